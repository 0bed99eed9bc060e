import os

# Gunicorn serves production
os.environ.setdefault("ENV", "production")

from payproof import create_app  # noqa: E402

app = create_app()
