"""Work queue core: atomic claims, job/task lifecycle, poll loop, liveness.

Both worker roles share this package. Exclusivity across worker processes
comes from the store's single-statement claim, not from in-process locks;
the poll loop itself is strictly sequential, with the heartbeat reporter as
the only concurrent activity in a process.
"""
