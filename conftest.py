"""Global pytest configuration."""

import os

# Keep a developer's .env/OpenAI key out of the test run
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.pop("OPENAI_API_KEY", None)
