from perch import RouteSpec


def get(ctx):
    def handler(session):
        return {"id": session.user_id}

    return RouteSpec(handler=handler, authenticate=True)
