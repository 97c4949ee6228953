"""Configuration loading — buildplan.yml and key/value property files."""
