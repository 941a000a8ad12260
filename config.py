"""
Configuration for the rollout streamer, read from the environment.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

AWS_REGION = os.getenv('AWS_REGION', 'us-east-1')

# Advisory delay between two describe calls
STREAMER_FETCH_INTERVAL_SECONDS = float(os.getenv('STREAMER_FETCH_INTERVAL_SECONDS', 4))

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
