"""In-process fakes for the external services the front-end talks to."""
