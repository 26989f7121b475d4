import sys
sys.path.insert(0, "backend")
from rsvp_api.main import create_app

app = create_app()

routes = []
for r in app.routes:
    methods = getattr(r, "methods", None)
    routes.append((r.path, sorted(list(methods)) if methods else []))

routes.sort()
for p, m in routes:
    print(f"{p:40} {m}")
