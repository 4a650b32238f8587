"""
Host platform detection in registry naming.

Provider registries name platforms the way Go does (``linux``/``darwin``/
``windows``, ``amd64``/``arm64``/``386``/``arm``), so the running platform is
normalized to those names.
"""

import platform


def detect_os() -> str:
    """
    Detect operating system.

    Returns:
        Registry OS name, e.g. 'linux', 'darwin', 'windows', 'freebsd'
    """
    system = platform.system().lower()
    if system.startswith(("cygwin", "msys", "mingw")):
        return "windows"
    return system


def detect_arch() -> str:
    """
    Detect CPU architecture.

    Returns:
        Registry architecture name: 'amd64', 'arm64', '386', 'arm'
    """
    machine = platform.machine().lower()

    # Normalize architecture names
    if machine in ("x86_64", "amd64", "x64"):
        return "amd64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "386"
    elif machine.startswith("arm"):
        return "arm"
    else:
        # Unknown architectures pass through unchanged
        return machine
