"""Bot package for the medicine analog bot.

This package contains the Telegram bot that exposes the Pillintrip search via
a chat interface. The bot takes a medicine name, offers the matching medicines
as buttons and, once one is chosen, lists its analogs in the target country
as links to their Pillintrip pages.
"""
