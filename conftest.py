"""Global pytest configuration."""

import os

# Tests never talk to a real provider or Redis unless a test opts in
os.environ["OPENAI_API_KEY"] = ""
os.environ.pop("REDIS_URL", None)
