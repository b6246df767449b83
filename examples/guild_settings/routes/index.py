def get(ctx):
    return {"handler": lambda: {"name": "guild-settings", "ok": True}}
