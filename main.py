#!/usr/bin/env python3
"""
Comparison Chart - Main Entry Point

Starts the comparison chart server.

Usage:
    python main.py --data-dir quotes/
    python main.py --data-dir quotes/ --history charts.json --port 8080
"""

if __name__ == "__main__":
    from src.comparison_chart.main import main
    main()
