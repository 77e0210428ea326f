"""
cicd_monitor.__main__

Entrypoint for `python -m cicd_monitor`.
"""

from cicd_monitor.cli import main

if __name__ == "__main__":
    main()
