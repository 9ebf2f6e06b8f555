"""Business logic services used by handlers.

Services are wired together by ``handlers.runtime`` rather than imported here,
so importing one handler does not pull in every dependency.
"""
