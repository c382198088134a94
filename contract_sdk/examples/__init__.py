"""Example contracts built on contract_sdk (exercised by the test-suite)."""
