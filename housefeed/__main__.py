"""Run the house feed service: python -m housefeed"""

from .app import main

main()
