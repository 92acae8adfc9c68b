# (c) Copyright IBM Corp. 2025

"""
Helpers that read a mounted proc filesystem: namespace identities, the process
inventory and the socket inodes held by each process.
"""
