"""User credentials, bearer tokens and the registration/login workflow."""
