"""Development entry point: ``python app.py``.

Production servers should import ``hr_workflow.main:create_app`` instead.
"""
import os

from hr_workflow.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5000")),
        debug=app.config.get("DEBUG", False),
    )
