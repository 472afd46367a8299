from dotenv import load_dotenv
import os

# Load environment variables from .env file
load_dotenv()

from fleetcore_backend import create_app
from fleetcore_backend.manage import main

app = create_app()

if __name__ == "__main__":
    app.config["PORT"] = int(os.getenv("PORT", 8000))  # Default to 8000 if not in .env
    main(app)
