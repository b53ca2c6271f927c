"""Document upload/delete coordination.

Owns the visible document list of the active knowledge base. The remote
store is the source of truth; the local list only changes after the remote
side confirmed an upload or a deletion.
"""

import httpx

from shared.clients.ClientInterface import ClientRequestError
from shared.clients.kb.KBClientInterface import KBClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.NoticeChannel import NoticeChannel
from shared.models.document import Document, UploadFile, UploadResult


class DocumentCoordinator:
    """Sends files to the remote knowledge base and keeps the local list in step."""

    def __init__(
        self,
        helper_config: HelperConfig,
        kb_client: KBClientInterface,
        notices: NoticeChannel,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._kb_client = kb_client
        self._notices = notices
        self._knowledge_base_id: str | None = None
        self._documents: list[Document] = []
        self._is_uploading = False

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_documents(self) -> list[Document]:
        return list(self._documents)

    def get_document(self, document_id: str) -> Document | None:
        return next((doc for doc in self._documents if doc.id == document_id), None)

    def get_knowledge_base_id(self) -> str | None:
        return self._knowledge_base_id

    def is_uploading(self) -> bool:
        return self._is_uploading

    ##########################################
    ################ CORE ####################
    ##########################################

    def reset(self, knowledge_base_id: str | None, documents: list[Document] | None = None) -> None:
        """Replace the active knowledge base and its document list after a sync."""
        self._knowledge_base_id = knowledge_base_id
        self._documents = self._dedupe(documents or [])

    async def upload(self, files: list[UploadFile], knowledge_base_id: str | None = None) -> UploadResult:
        """Upload files one after another and append them once the whole batch succeeded.

        On the first failing file the batch is abandoned and nothing from this
        call is added to the visible list, even though earlier files of the
        batch already exist remotely. Those are returned as `orphaned`.

        Args:
            files (list[UploadFile]): Files in the order they should be sent.
            knowledge_base_id (str | None): Target knowledge base, defaults to the active one.

        Returns:
            UploadResult: What was added, or how the batch failed.
        """
        kb_id = knowledge_base_id or self._knowledge_base_id
        if not kb_id or not files:
            return UploadResult()

        self._is_uploading = True
        uploaded: list[Document] = []
        try:
            for index, file in enumerate(files):
                try:
                    document_id = await self._kb_client.do_upload_document(kb_id, file)
                except (ClientRequestError, httpx.HTTPError) as exc:
                    return self._abandon_batch(file, index, uploaded, exc)

                if not document_id:
                    self.logging.warning("Upload of '%s' returned no document id. Skipping it.", file.name)
                    continue
                uploaded.append(
                    Document(
                        id=document_id,
                        name=file.name,
                        size=file.get_size(),
                        mime_type=file.mime_type,
                    )
                )
        finally:
            self._is_uploading = False

        # a concurrent sync may have switched the knowledge base meanwhile
        if kb_id != self._knowledge_base_id:
            self.logging.warning(
                "Knowledge base changed from %s to %s during upload; %d uploaded file(s) are not shown.",
                kb_id,
                self._knowledge_base_id,
                len(uploaded),
            )
            return UploadResult(orphaned=uploaded)

        self._documents = self._dedupe(self._documents + uploaded)
        self.logging.info("Uploaded %d of %d file(s) into knowledge base %s.", len(uploaded), len(files), kb_id)
        self._notices.notify("Files Uploaded", f"Successfully uploaded {len(uploaded)} file(s).")
        return UploadResult(added=uploaded)

    async def delete(self, document_id: str, knowledge_base_id: str | None = None) -> str | None:
        """Delete a document remotely, then drop it from the local list.

        Args:
            document_id (str): The document to delete.
            knowledge_base_id (str | None): Its knowledge base, defaults to the active one.

        Returns:
            str | None: The deleted id, None if nothing was deleted.
        """
        kb_id = knowledge_base_id or self._knowledge_base_id
        if not kb_id:
            return None

        try:
            await self._kb_client.do_delete_document(kb_id, document_id)
        except (ClientRequestError, httpx.HTTPError) as exc:
            self.logging.error("Deleting document %s failed: %s", document_id, exc)
            self._notices.notify("Deletion Failed", "There was an error removing your document.", destructive=True)
            return None

        self._documents = [doc for doc in self._documents if doc.id != document_id]
        self.logging.info("Deleted document %s from knowledge base %s.", document_id, kb_id)
        self._notices.notify("Document Deleted", "Document successfully removed from your knowledge base.")
        return document_id

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _abandon_batch(self, file: UploadFile, index: int, uploaded: list[Document], exc: Exception) -> UploadResult:
        if uploaded:
            self.logging.warning(
                "Upload of '%s' failed after %d file(s) were stored remotely; they are not shown locally: %s",
                file.name,
                len(uploaded),
                ", ".join(doc.id for doc in uploaded),
            )
        self.logging.error("Upload of '%s' (file %d) failed: %s", file.name, index + 1, exc)
        self._notices.notify("Upload Failed", "There was an error uploading your files.", destructive=True)
        return UploadResult(
            failed=True,
            failed_file=file.name,
            failed_index=index,
            orphaned=uploaded,
            partial=bool(uploaded),
            error=str(exc),
        )

    @staticmethod
    def _dedupe(documents: list[Document]) -> list[Document]:
        """Keep the first occurrence of every id, preserving order."""
        seen: set[str] = set()
        unique = []
        for doc in documents:
            if doc.id in seen:
                continue
            seen.add(doc.id)
            unique.append(doc)
        return unique
