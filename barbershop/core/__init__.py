"""Pure scheduling rules: no database, no clock reads."""
