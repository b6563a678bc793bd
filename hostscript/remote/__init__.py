"""Remote execution over SSH (paramiko)."""

from .ssh_transport import HostConfig, SSHConnection, SSHSession, connect

__all__ = ["HostConfig", "SSHConnection", "SSHSession", "connect"]
