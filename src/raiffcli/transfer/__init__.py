"""Transfer flows: collection, execution and signing."""
