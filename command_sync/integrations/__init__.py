from .discord_commands import DiscordCommandClient, RemoteResponse

__all__ = ["DiscordCommandClient", "RemoteResponse"]
