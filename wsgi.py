import os

# Force production env if nothing else says otherwise
os.environ.setdefault("ENV", "production")

from inline_csp import create_app  # noqa: E402

app = create_app()
