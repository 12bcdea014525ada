"""
Core utilities: error taxonomy shared by listener, fetcher, resolvers and runner.
"""
