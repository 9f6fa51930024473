"""Conversion API endpoints."""
from __future__ import annotations

import logging

from litestar import Controller, post
from litestar.exceptions import ClientException
from litestar.status_codes import HTTP_200_OK

from s3clf.services.logparser import (
    AccessLogRecord,
    ConversionResult,
    InvalidBitrate,
    MalformedLogLine,
    S3AccessLogConverter,
    UnsupportedPolicy,
    parse_line,
)
from s3clf.api.v1.schemas import ConvertRequest, ParseRequest

logger = logging.getLogger(__name__)


class ConvertController(Controller):
    """S3 access log conversion endpoints

    Converts S3 server access log lines to Apache Combined Log Format.
    """
    path = "/api/v1"
    tags = ["Conversion"]

    @post("/convert", status_code=HTTP_200_OK)
    async def convert_lines(
        self,
        data: ConvertRequest,
        converter: S3AccessLogConverter,
    ) -> list[ConversionResult]:
        """Convert lines, using the request overrides where given.

        Lines converted with overrides are counted in the shared converter stats too.
        """
        if all(
            value is None
            for value in (data.copy_operation, data.recalculate_partial_content, data.max_kbitrate)
        ):
            return [converter.convert_line(line) for line in data.lines]

        try:
            request_converter = S3AccessLogConverter(
                copy_operation=(
                    converter.copy_operation if data.copy_operation is None else data.copy_operation
                ),
                recalculate_partial_content=(
                    converter.recalculate_partial_content
                    if data.recalculate_partial_content is None
                    else data.recalculate_partial_content
                ),
                max_kbitrate=converter.max_kbitrate if data.max_kbitrate is None else data.max_kbitrate,
            )
        except (UnsupportedPolicy, InvalidBitrate) as exc:
            raise ClientException(detail=str(exc)) from exc

        results = [request_converter.convert_line(line) for line in data.lines]
        converter.merge_stats(request_converter)
        return results

    @post("/parse", status_code=HTTP_200_OK)
    async def parse(self, data: ParseRequest) -> AccessLogRecord:
        """Parse a single line into its fields without converting it."""
        try:
            return parse_line(data.line)
        except MalformedLogLine as exc:
            logger.debug("Rejected line: %s", exc.raw_line)
            raise ClientException(detail=str(exc)) from exc
