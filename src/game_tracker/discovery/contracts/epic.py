"""
Data contracts for Epic Games Launcher manifests.

The launcher writes one JSON ``.item`` document per installed item
under its ``Data/Manifests`` directory.
"""

from pydantic import BaseModel, ConfigDict, Field


class EpicItemManifest(BaseModel):
    """Fields discovery reads from an Epic ``.item`` manifest."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    display_name: str | None = Field(default=None, alias="DisplayName")
    install_location: str | None = Field(default=None, alias="InstallLocation")
    launch_executable: str | None = Field(default=None, alias="LaunchExecutable")
    app_name: str | None = Field(default=None, alias="AppName")
    is_application: bool = Field(default=False, alias="bIsApplication")

    @property
    def is_game(self) -> bool:
        """
        Check whether this manifest describes a launchable game.

        DLC and engine components are written as non-applications,
        and entries without a name, id or location cannot be tracked.
        """
        return bool(
            self.is_application
            and self.display_name
            and self.display_name.strip()
            and self.app_name
            and self.app_name.strip()
            and self.install_location
            and self.install_location.strip()
        )
