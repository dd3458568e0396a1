"""Core functionality: argument parsing, installation, and service hosting."""
