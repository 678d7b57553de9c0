"""Command-line interface: ``langfactory <group> <command>``."""
