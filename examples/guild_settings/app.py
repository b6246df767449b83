"""Guild settings: a file-routed control plane for a bot.

Routes live under ``routes/``: ``routes/guilds/[guild]/settings.py`` serves
``/guilds/:guild/settings`` and requires the caller to manage the guild.
Guild membership comes from an in-memory directory; swap in
``DiscordGuildDirectory(config.bot_token)`` for the real thing.

Run:
    cd examples/guild_settings && python app.py
"""

from pathlib import Path

from perch import App, AppConfig
from perch.guilds import StaticGuildDirectory

ROUTES = Path(__file__).parent / "routes"

config = AppConfig(
    secret_key="change-me-to-a-long-random-signing-key",
    supers=frozenset({"999"}),
)

guilds = StaticGuildDirectory.build({
    "123": {"42": ["MANAGE_GUILD"], "7": ["SEND_MESSAGES"]},
})

app = App(config, guilds=guilds, state={"settings": {}})
app.mount_routes(ROUTES)


if __name__ == "__main__":
    from perch.logs import configure_logging

    configure_logging("debug")
    app.run()
