"""Generated resumes: rendering, storage and the resume library.

A generated resume is rendered to an HTML document, stored in the resumes
bucket under "{user_id}/{job_id}-{epoch_ms}.html" and registered in the
resumes table.
"""

import html
import os
import time
from datetime import datetime

import httpx
from pytz import timezone

from shared.clients.ClientInterface import ClientRequestError
from shared.clients.datastore.DataStoreClientInterface import BUCKET_RESUMES, DataStoreClientInterface, DataStoreError
from shared.helper.HelperConfig import HelperConfig
from shared.models.datastore import ResumeRecord

RESUME_TEMPLATE = """
<html>
<head>
  <style>
    body {{ font-family: Arial, sans-serif; margin: 40px; line-height: 1.6; }}
    h1 {{ color: #333; border-bottom: 2px solid #333; padding-bottom: 10px; }}
    .content {{ margin-top: 20px; }}
  </style>
</head>
<body>
  <h1>Resume for {job_id}</h1>
  <div class="content">
    {content}
  </div>
  <footer style="margin-top: 40px; text-align: center; color: #666; font-size: 12px;">
    Generated on {generated_on}
  </footer>
</body>
</html>
"""


def render_resume_html(text: str, job_id: str, generated_on: str) -> str:
    content = "<br>".join(html.escape(line) for line in text.split("\n"))
    return RESUME_TEMPLATE.format(job_id=html.escape(job_id), content=content, generated_on=generated_on)


class ResumeService:
    def __init__(self, helper_config: HelperConfig, datastore_client: DataStoreClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._datastore = datastore_client
        self._tz = timezone(helper_config.get_string_val("TIMEZONE", default="Europe/Berlin"))

    ##########################################
    ############### GENERATE #################
    ##########################################

    async def generate(self, text: str | None, job_id: str | None, user_id: str | None) -> dict:
        """Render, store and register a resume.

        Returns:
            dict: {"success": True, "resume": <row>, "fileName": <object path>}

        Raises:
            DataStoreError: 400 if a field is missing, 500 if storage or the table insert fails.
        """
        if not text or not job_id or not user_id:
            raise DataStoreError("Missing required fields: text, jobId, userId", status_code=400)

        generated_on = datetime.now(self._tz).strftime("%m/%d/%Y")
        document = render_resume_html(text, job_id, generated_on)
        file_name = f"{user_id}/{job_id}-{int(time.time() * 1000)}.html"

        try:
            await self._datastore.do_upload_object(BUCKET_RESUMES, file_name, document.encode("utf-8"), "text/html")
            resume = await self._datastore.do_create_resume(user_id=user_id, job_id=job_id, pdf_url=file_name, content=text)
        except (ClientRequestError, httpx.HTTPError, ValueError) as exc:
            self.logging.error("Error generating resume for job %s: %s", job_id, exc)
            raise DataStoreError(str(exc)) from exc

        self.logging.info("Generated resume %d for job %s at %s.", resume.id, job_id, file_name)
        return {"success": True, "resume": resume.model_dump(mode="json"), "fileName": file_name}

    ##########################################
    ################ LIBRARY #################
    ##########################################

    async def list_resumes(self, user_id: str | None = None) -> list[ResumeRecord]:
        try:
            return await self._datastore.do_fetch_resumes(user_id)
        except (ClientRequestError, httpx.HTTPError) as exc:
            self.logging.error("Error fetching resumes: %s", exc)
            raise DataStoreError("Failed to load resumes") from exc

    async def download(self, resume_id: int) -> tuple[str, bytes]:
        """Fetch the stored file of a resume.

        Returns:
            tuple[str, bytes]: Download file name and content.
        """
        resume = await self._get_resume(resume_id)
        try:
            content = await self._datastore.do_download_object(BUCKET_RESUMES, resume.pdf_url)
        except (ClientRequestError, httpx.HTTPError) as exc:
            self.logging.error("Error downloading resume %d: %s", resume_id, exc)
            raise DataStoreError("Failed to download resume") from exc
        extension = os.path.splitext(resume.pdf_url)[1] or ".pdf"
        return f"resume-{resume.job_id}{extension}", content

    async def delete(self, resume_id: int) -> None:
        """Delete the table row. The stored file is removed on a best-effort basis."""
        resume = await self._get_resume(resume_id)
        try:
            await self._datastore.do_delete_resume(resume_id)
        except (ClientRequestError, httpx.HTTPError) as exc:
            self.logging.error("Error deleting resume %d: %s", resume_id, exc)
            raise DataStoreError("Failed to delete resume") from exc

        try:
            await self._datastore.do_remove_object(BUCKET_RESUMES, resume.pdf_url)
        except (ClientRequestError, httpx.HTTPError) as exc:
            self.logging.warning("Resume %d deleted but its file %s could not be removed: %s", resume_id, resume.pdf_url, exc)
        self.logging.info("Deleted resume %d.", resume_id)

    async def _get_resume(self, resume_id: int) -> ResumeRecord:
        try:
            resume = await self._datastore.do_fetch_resume(resume_id)
        except (ClientRequestError, httpx.HTTPError) as exc:
            self.logging.error("Error fetching resume %d: %s", resume_id, exc)
            raise DataStoreError("Failed to load resume") from exc
        if resume is None:
            raise DataStoreError(f"Resume {resume_id} not found", status_code=404)
        return resume
