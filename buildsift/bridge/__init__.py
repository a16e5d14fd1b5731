"""Bridge layer between buildsift and external build tooling.

Modules
-------
driver
    ``BuildDriver`` protocol plus ``SubprocessBuildDriver`` (live builds)
    and ``ReplayBuildDriver`` (captured logs).
xcodebuild
    ``XcodebuildRunner`` — executes ``RebuildCommand`` steps.

Nothing outside this package spawns processes.
"""
