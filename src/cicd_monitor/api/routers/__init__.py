"""
cicd_monitor.api.routers

Router modules (health probes, loop status).
"""
