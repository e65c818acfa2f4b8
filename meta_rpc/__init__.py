"""
Block metadata JSON-RPC service.

Read-only JSON-RPC facade answering slot range, block time and block
height queries from the MySQL metadata store.
"""
