"""
Tool dispatch pipeline.

registry (safety filtering) -> invoker (authorize, bound, execute, audit) -> dispatch (transport boundary).
"""
