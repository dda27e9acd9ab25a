"""Migration steps, one module per schema version (``NNN_<slug>.py``)."""
