"""Configuration — pydantic section models, settings merge, logging setup."""
