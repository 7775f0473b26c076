#!/usr/bin/env python3
"""
Simple runner for the Tuition Agent
Validates configuration before uvicorn binds the port
"""

import sys
import os

# Add current directory to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def main():
    import uvicorn
    from dotenv import load_dotenv
    from config_loader import load_config_or_exit

    load_dotenv()
    config = load_config_or_exit()

    print("🤖 Starting Tuition Agent...")
    print(f"📍 Host: {config['server']['host']}")
    print(f"🔌 Port: {config['server']['port']}")
    print(f"🤖 Model: {config['gemini']['model_name']}")

    uvicorn.run(
        "main:app",
        host=config["server"]["host"],
        port=config["server"]["port"],
        reload=config["app"]["debug"],
        log_level=config["app"]["log_level"].lower()
    )


if __name__ == "__main__":
    main()
