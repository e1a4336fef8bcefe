"""Write-time checks shared by the document store implementations."""

from __future__ import annotations

from src.models.document import Chunk
from src.utils.errors import StoreError, VectorDimensionError


def validate_chunks(
    document_id: str,
    chunks: list[Chunk],
    dimension: int,
    provider_name: str,
) -> None:
    """Check a chunk set before it replaces a document's chunks.

    Ordinals must be unique and contiguous from 0 (in any input order).

    Raises
    ------
    StoreError
        If a chunk names another document, or the ordinals repeat or
        leave a gap.
    VectorDimensionError
        If a non-null vector's length differs from *dimension*.
    """
    seen: set[int] = set()
    for chunk in chunks:
        if chunk.document_id != document_id:
            raise StoreError(
                message=(
                    f"Chunk {chunk.chunk_id} belongs to {chunk.document_id}, "
                    f"not {document_id}"
                ),
                provider_name=provider_name,
            )
        if chunk.chunk_index in seen:
            raise StoreError(
                message=f"Duplicate chunk_index {chunk.chunk_index} for {document_id}",
                provider_name=provider_name,
            )
        seen.add(chunk.chunk_index)
        if chunk.embedding is not None and len(chunk.embedding) != dimension:
            raise VectorDimensionError(
                message=(
                    f"Chunk {chunk.chunk_index} of {document_id} has a vector of "
                    f"length {len(chunk.embedding)}, expected {dimension}"
                ),
                provider_name=provider_name,
            )

    ordinals = sorted(seen)
    if ordinals != list(range(len(chunks))):
        raise StoreError(
            message=(
                f"Chunk ordinals for {document_id} must run 0..{len(chunks) - 1} "
                f"without gaps, got {ordinals}"
            ),
            provider_name=provider_name,
        )
