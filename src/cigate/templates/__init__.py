"""Bundled starter configuration files."""
