"""
Thin entrypoint: `python bot.py` runs the moderation panel.
Polling or webhook mode is chosen from WEBHOOK_URL/PORT in the environment.
"""
from modpanel.app import main


if __name__ == "__main__":
    main()
