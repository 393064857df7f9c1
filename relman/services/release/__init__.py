"""Release naming schemes and the tag lifecycle."""
