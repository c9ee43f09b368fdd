"""netsup infrastructure - driver, storage and network layers."""
