"""Public API: engine facade, audio sources and boundary results."""
