# app.py
"""
Application entrypoint.

Usage:
  python app.py migrate --db reship.db
  python app.py settings show
  python app.py order create --client <id> --store <id> --price 100 --currency USD
  python app.py shipment create SH-1 --boxes 2 --orders "FCD1001:1, FCD1002:2"
  python app.py storage suggest FCD1001
  python app.py rel billing
"""

from reship.adapters.cli import main

if __name__ == "__main__":
    main()
