"""Allow running as: python -m offline_results"""

from .cli import main

main()
