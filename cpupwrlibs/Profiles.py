# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2024-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause

"""
Provide the profile store: named sets of per-CPU frequency scaling settings.

Profiles come from three sources, later sources override earlier ones by name:
  1. Built-in profiles, generated from the governors available on the system.
  2. System profiles, '*.profile' files in the system profiles directory.
  3. User profiles, '*.profile' files in the user profiles directory.

Profile file format:

    # name: Power Saving
    # CPUs  Min   Max   Governor    Online  Energy preference
    0-3     800   -     powersave   y       power
    4,6     -     -     -           n

Frequencies are in MHz, '-' (or a non-positive value) means the hardware limit. Governor '-' means
"do not change". The online and energy preference columns are optional.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import os
from pathlib import Path
from typing import NamedTuple
from cpupwrlibs import CPUInfo, SysfsIO
from cpupwrlibs.helperlibs import Logging, ClassHelpers, Trivial
from cpupwrlibs.helperlibs.Exceptions import Error, ErrorBadFormat, ErrorExists, ErrorNotFound

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupwr.{__name__}")

# The system profiles directory.
SYSTEM_PROFILES_DIR = Path("/etc/cpupwr.d")

# The governor of the "Balanced" built-in profile, the first available one is used.
_BALANCED_GOVERNORS = ("schedutil", "ondemand", "powersave")

# Governors that do not get a built-in profile.
_SKIP_GOVERNORS = ("userspace",)

_ONLINE_VALUES = ("y", "yes", "1", "true")

def get_user_profiles_dir() -> Path:
    """Return the user profiles directory: '$XDG_CONFIG_HOME/cpupwr', '~/.config/cpupwr' by
    default."""

    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "cpupwr"
    return Path.home() / ".config" / "cpupwr"

class ProfileEntry(NamedTuple):
    """
    Settings of a single CPU in a profile.

    Attributes:
        freq_min: The minimum frequency in kHz, 0 if not set.
        freq_max: The maximum frequency in kHz, 0 if not set.
        governor: The governor name, empty string if not set.
        online: Whether the CPU should be online.
        energy_pref: The energy performance preference, empty string if not set.
    """

    freq_min: int = 0
    freq_max: int = 0
    governor: str = ""
    online: bool = True
    energy_pref: str = ""

class Profile:
    """
    A named set of per-CPU settings.

    Attributes:
        name: The profile name.
        path: Path to the profile file, 'None' for built-in profiles.
        is_system: 'True' if the profile comes from the system profiles directory.
        is_builtin: 'True' if the profile was generated from the available governors.
        entries: CPU number -> 'ProfileEntry' dictionary.
    """

    def __init__(self, name: str, path: Path | None = None, is_system: bool = False,
                 is_builtin: bool = False, entries: dict[int, ProfileEntry] | None = None):
        """Initialize a class instance."""

        self.name = name
        self.path = path
        self.is_system = is_system
        self.is_builtin = is_builtin
        self.entries: dict[int, ProfileEntry] = entries if entries is not None else {}

    def is_custom(self) -> bool:
        """Return 'True' for user profiles, which are the only profiles that can be deleted."""

        return not self.is_system and not self.is_builtin

    def __repr__(self) -> str:
        """Return the string representation of the profile."""

        return f"Profile(name={self.name!r}, path={self.path!r}, is_system={self.is_system}, " \
               f"is_builtin={self.is_builtin}, cpus={Trivial.rangify(self.entries)!r})"

def _mhz_to_khz(val: str) -> int:
    """Convert a profile file frequency in MHz to kHz, '-' and non-positive values to 0."""

    if val == "-" or not Trivial.is_int(val, base=10):
        return 0

    mhz = int(val)
    if mhz <= 0:
        return 0
    return mhz * 1000

def _khz_to_mhz(val: int) -> str:
    """Convert a frequency in kHz to the profile file MHz representation."""

    if val <= 0:
        return "-"
    return str(val // 1000)

def format_profile(profile: Profile) -> str:
    """Return the profile file contents for 'profile'."""

    lines = [f"# name: {profile.name}", "", "# CPU\tMin\tMax\tGovernor\tOnline\tEnergy preference"]
    for cpu in sorted(profile.entries):
        entry = profile.entries[cpu]
        fields = [str(cpu), _khz_to_mhz(entry.freq_min), _khz_to_mhz(entry.freq_max),
                  entry.governor or "-", "y" if entry.online else "n"]
        if entry.energy_pref:
            fields.append(entry.energy_pref)
        lines.append("\t".join(fields))

    return "\n".join(lines) + "\n"

class ProfileStore(ClassHelpers.SimpleCloseContext):
    """
    The profile store.

    Public methods overview.

    1. Query profiles.
        * 'get_names()' - sorted profile names.
        * 'has_profile()', 'get_profile()'.
    2. Manage user profiles.
        * 'create_profile()' - write a user profile file.
        * 'delete_profile()' - delete a user profile file.
    3. Miscellaneous.
        * 'reload()' - re-read all the profiles.
        * 'parse_profile_file()' - parse a profile file.
    """

    def __init__(self,
                 cpuinfo: CPUInfo.CPUInfo | None = None,
                 system_dir: Path | str | None = None,
                 user_dir: Path | str | None = None):
        """
        Initialize a class instance and load the profiles.

        Args:
            cpuinfo: The CPU information object, used for generating the built-in profiles and for
                     filling unset frequencies with the hardware limits. A new one is created by
                     default.
            system_dir: The system profiles directory, '/etc/cpupwr.d' by default.
            user_dir: The user profiles directory, '$XDG_CONFIG_HOME/cpupwr' by default.
        """

        self._cpuinfo = cpuinfo
        self._close_cpuinfo = cpuinfo is None
        if not self._cpuinfo:
            self._cpuinfo = CPUInfo.CPUInfo()

        self.system_dir = Path(system_dir) if system_dir else SYSTEM_PROFILES_DIR
        self.user_dir = Path(user_dir) if user_dir else get_user_profiles_dir()

        self._profiles: dict[str, Profile] = {}
        self.reload()

    def close(self):
        """Uninitialize the class object."""

        ClassHelpers.close(self, close_attrs=("_cpuinfo",))

    @property
    def cpuinfo(self) -> CPUInfo.CPUInfo:
        """The CPU information object."""

        if not self._cpuinfo:
            raise Error("the profile store was closed")
        return self._cpuinfo

    def reload(self):
        """Re-read all the profiles."""

        self._profiles = {}
        self._generate_builtin_profiles()
        self._load_dir(self.system_dir, True)
        self._load_dir(self.user_dir, False)

        _LOG.debug("loaded %d profiles: %s", len(self._profiles), ", ".join(self.get_names()))

    def get_names(self) -> list[str]:
        """Return the sorted list of profile names."""

        return sorted(self._profiles)

    def has_profile(self, name: str) -> bool:
        """Return 'True' if profile 'name' exists."""

        return name in self._profiles

    def get_profile(self, name: str) -> Profile:
        """
        Return profile 'name'.

        Raises:
            ErrorNotFound: If there is no such profile.
        """

        try:
            return self._profiles[name]
        except KeyError:
            names = ", ".join(self.get_names())
            raise ErrorNotFound(f"profile '{name}' does not exist, available profiles: "
                                f"{names}") from None

    def _make_builtin_profile(self, name: str, governor: str, cpus: list[int]) -> Profile:
        """Create a built-in profile setting 'governor' and hardware limits on 'cpus'."""

        entries = {}
        for cpu in cpus:
            hw_min, hw_max = self.cpuinfo.get_limits(cpu)
            entries[cpu] = ProfileEntry(hw_min, hw_max, governor, True)

        return Profile(name, is_builtin=True, entries=entries)

    def _generate_builtin_profiles(self):
        """Generate the "Balanced" profile and a profile per available governor."""

        governors = self.cpuinfo.get_governors(0)
        if not governors:
            _LOG.debug("no governors available for CPU 0, not generating built-in profiles")
            return

        cpus = self.cpuinfo.get_available_cpus()

        for governor in _BALANCED_GOVERNORS:
            if governor in governors:
                self._profiles["Balanced"] = self._make_builtin_profile("Balanced", governor, cpus)
                break

        for governor in governors:
            if governor in _SKIP_GOVERNORS:
                continue

            name = governor[0].upper() + governor[1:]
            if name in self._profiles:
                continue

            self._profiles[name] = self._make_builtin_profile(name, governor, cpus)

    def _load_dir(self, dirpath: Path, is_system: bool):
        """Load all '*.profile' files from directory 'dirpath'."""

        if not dirpath.is_dir():
            _LOG.debug("profiles directory '%s' does not exist", dirpath)
            return

        for path in sorted(dirpath.glob("*.profile")):
            if not path.is_file():
                continue

            try:
                profile = self.parse_profile_file(path, is_system=is_system)
            except Error as err:
                _LOG.warning("skipping profile file '%s':\n%s", path, err.indent(2))
                continue

            if profile.name in self._profiles:
                _LOG.debug("profile '%s' from '%s' overrides an earlier one", profile.name, path)
            self._profiles[profile.name] = profile

    def parse_profile_file(self, path: Path | str, is_system: bool = False) -> Profile:
        """
        Parse a profile file. Unset frequencies are filled with the hardware limits.

        Args:
            path: The profile file path.
            is_system: Whether the profile file is a system profile.

        Returns:
            The profile.

        Raises:
            Error: If the file could not be read.
        """

        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as fobj:
                lines = fobj.readlines()
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"failed to read profile file '{path}':\n{msg}") from None

        name = ""
        entries: dict[int, ProfileEntry] = {}
        first = True

        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue

            if first:
                first = False
                if line.startswith("# name:"):
                    name = line[len("# name:"):].strip()
                    continue

            if line.startswith("#"):
                continue

            fields = line.split()
            if len(fields) < 4:
                _LOG.debug("%s:%d: less than 4 fields, ignoring the line", path, lineno)
                continue

            try:
                cpus = sorted(SysfsIO.parse_range_list(fields[0]))
            except ErrorBadFormat as err:
                _LOG.warning("%s:%d: bad CPU list, ignoring the line:\n%s",
                             path, lineno, err.indent(2))
                continue

            fmin = _mhz_to_khz(fields[1])
            fmax = _mhz_to_khz(fields[2])
            governor = fields[3] if fields[3] != "-" else ""

            online = True
            if len(fields) > 4:
                online = fields[4].lower() in _ONLINE_VALUES

            energy_pref = ""
            if len(fields) > 5 and fields[5] != "-":
                energy_pref = fields[5]

            for cpu in cpus:
                hw_min, hw_max = self.cpuinfo.get_limits(cpu)
                entries[cpu] = ProfileEntry(fmin if fmin > 0 else hw_min,
                                            fmax if fmax > 0 else hw_max,
                                            governor, online, energy_pref)

        if not name:
            name = path.stem

        return Profile(name, path=path, is_system=is_system, entries=entries)

    def create_profile(self, name: str, entries: dict[int, ProfileEntry]) -> Profile:
        """
        Create a user profile, or overwrite an existing user profile of the same name.

        Args:
            name: The profile name.
            entries: CPU number -> 'ProfileEntry' dictionary.

        Returns:
            The created profile.

        Raises:
            ErrorBadFormat: If the name is empty.
            ErrorExists: If a system or built-in profile of the same name exists.
        """

        name = name.strip()
        if not name:
            raise ErrorBadFormat("profile name cannot be empty")

        existing = self._profiles.get(name)
        if existing and not existing.is_custom():
            kind = "built-in" if existing.is_builtin else "system"
            raise ErrorExists(f"cannot overwrite {kind} profile '{name}'")

        safe_name = name.replace(" ", "-")
        path = self.user_dir / f"cpg-{safe_name}.profile"
        profile = Profile(name, path=path, entries=dict(entries))

        try:
            self.user_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as fobj:
                fobj.write(format_profile(profile))
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"failed to write profile file '{path}':\n{msg}") from None

        _LOG.debug("wrote profile '%s' to '%s'", name, path)
        self._profiles[name] = profile
        return profile

    def delete_profile(self, name: str):
        """
        Delete a user profile.

        Args:
            name: The profile name.

        Raises:
            ErrorNotFound: If there is no such profile.
            Error: If the profile is a system or built-in profile, or the file could not be deleted.
        """

        profile = self.get_profile(name)
        if not profile.is_custom():
            kind = "built-in" if profile.is_builtin else "system"
            raise Error(f"cannot delete {kind} profile '{name}'")

        if profile.path and profile.path.exists():
            try:
                profile.path.unlink()
            except OSError as err:
                msg = Error(str(err)).indent(2)
                raise Error(f"failed to delete profile file '{profile.path}':\n{msg}") from None

        del self._profiles[name]
        _LOG.debug("deleted profile '%s'", name)
