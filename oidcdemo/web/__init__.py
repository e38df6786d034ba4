"""Web interface for oidcdemo."""
