"""Configuration loading (YAML, .env, environment) and the SdkConfig object."""
