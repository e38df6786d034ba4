"""CLI for oidcdemo."""
