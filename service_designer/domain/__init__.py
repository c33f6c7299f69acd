"""Domain logic for the configuration analysis pipeline."""
