print("Checking imports...")
try:
    import httpx
    print(f"httpx {httpx.__version__}: OK")
except ImportError as e:
    print(f"httpx Error: {e}")

try:
    import pydantic_settings
    print("pydantic-settings: OK")
except ImportError as e:
    print(f"pydantic-settings Error: {e}")

try:
    from app.main import app
    print(f"App Import: OK ({len(app.routes)} routes)")
except Exception as e:
    print(f"App Import Error: {e}")

print("Done.")
