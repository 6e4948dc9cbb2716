import asyncio
import sys

from app.client.api_client import ApiService, ApiServiceError, env_token_provider
from app.core.config import ClientSettings


async def main(topic: str) -> int:
    settings = ClientSettings()
    print(f"🔌 Calling relay at {settings.MINDMAP_FUNCTION_URL} ...")

    service = ApiService(env_token_provider(settings), settings=settings)
    try:
        mind_map = await service.generate_mind_map(topic)
    except ApiServiceError as e:
        print(f"💣 Relay call failed: {e.message}")
        print("💡 Check MINDMAP_ACCESS_TOKEN and that the relay is running.")
        return 1

    print(f"✅ {len(mind_map.nodes)} nodes, {len(mind_map.edges)} edges")
    print("-" * 40)
    for node in mind_map.nodes:
        print(f"🌟 {node.id}: {node.label}")
    for edge in mind_map.edges:
        print(f"   {edge.source} → {edge.target}")
    return 0


if __name__ == "__main__":
    topic = " ".join(sys.argv[1:]) or "Photosynthesis"
    sys.exit(asyncio.run(main(topic)))
