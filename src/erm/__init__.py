"""ERM — minimal auth backend.

Issues signed bearer tokens on login and gates a group of routes
behind them. Credentials live in a Postgres `users` table.
"""

__version__ = "0.1.0"
