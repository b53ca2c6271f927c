"""Knowledge base sync runner.

Loads the stored API key, resolves its knowledge base (creating one if
needed) and logs the documents it holds.

Usage:
    python -m services.knowledge_sync.kb_sync
"""

import asyncio

from shared.clients.kb.KBClientManager import KBClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.helper.NoticeChannel import NoticeChannel
from shared.logging.logging_setup import setup_logging
from shared.storage.CredentialStoreFile import CredentialStoreFile
from services.credential.CredentialHolder import CredentialHolder
from services.knowledge_sync.KnowledgeBaseSynchronizer import KnowledgeBaseSynchronizer


async def main() -> int:
    """Run one synchronisation. Returns the process exit code."""
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    kb_client = KBClientManager(helper_config=config).get_client()
    credentials = CredentialHolder(config, store=CredentialStoreFile(config))

    api_key = credentials.load()
    if not api_key:
        logger.error("No API key stored. Submit one through the dashboard first.")
        return 1

    try:
        await kb_client.boot()
        synchronizer = KnowledgeBaseSynchronizer(config, kb_client=kb_client, notices=NoticeChannel(config))
        snapshot = await synchronizer.initialize(api_key)
        if snapshot is None:
            return 1

        kb = snapshot.knowledge_base
        logger.info("Knowledge base '%s' (%s)%s", kb.name, kb.id, " was created." if snapshot.created else ".", color="cyan")
        for doc in snapshot.documents:
            logger.info("  %s  %-40s %10d bytes  %s", doc.id, doc.name, doc.size, doc.mime_type)
        logger.info("%d document(s) in total.", len(snapshot.documents))
        return 0
    finally:
        await kb_client.close()


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
