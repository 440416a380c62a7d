"""Item capabilities: activation, ammunition and weapons."""
