"""Layout configuration and batch payload engine for print pre-press."""
