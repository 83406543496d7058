"""Built-in tool implementations for the connections agent."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from connections_agent.agent.registry import ToolContext, ToolRegistry, ToolSpec
from connections_agent.retrieval.searcher import MultiQuerySearcher
from connections_agent.types import ContentItem

MEMBER_LINK_PREFIX = "https://9zeromembers.slack.com/team/"

_SLACK_ID_PATTERN = re.compile(r"^U[A-Z0-9]+$")
_LINKEDIN_URL_PATTERN = re.compile(
    r"^(?:https?://)?(?:[a-z]{2,3}\.)?linkedin\.com/in/(?P<slug>[^/?#]+)/?",
    flags=re.IGNORECASE,
)


class OfficeLocation(str, Enum):
    SEATTLE = "Seattle"
    SAN_FRANCISCO = "San Francisco"


class SearchDocumentsInput(BaseModel):
    query: str = Field(
        min_length=1,
        description=(
            "The search query. Content from Slack, LinkedIn and member profiles is "
            "ranked by semantic similarity. Use terms similar to what you want to find."
        ),
    )
    limit: int = Field(
        default=20,
        ge=1,
        description="Number of results to return. Use 20 as a minimum and hand-sort the results.",
    )


class SearchMembersInput(BaseModel):
    queries: list[str] = Field(
        min_length=1,
        description=(
            "Search queries. Members matching any query are included, and members "
            'matching more queries rank higher, e.g. ["CTO", "agroforestry"].'
        ),
    )
    location: OfficeLocation | None = Field(
        default=None,
        description="Only include members based at this location. Leave blank unless asked.",
    )
    checkedInOnly: bool = Field(
        default=False,
        description="Only include members checked in today. Leave false unless asked.",
    )
    limit: int = Field(
        default=20,
        ge=1,
        description="Number of results to return from each query.",
    )


class FetchLinkedInProfileInput(BaseModel):
    memberIdentifier: str = Field(
        min_length=1,
        description=(
            "The member's full name, Slack ID, LinkedIn URL or member ID, e.g. "
            "'Jason Curtis', 'U07BA4JA3HC' or 'https://linkedin.com/in/jason-curtis/'."
        ),
    )


class CreateOnboardingThreadInput(BaseModel):
    memberSlackId: str = Field(
        min_length=1,
        description='The Slack ID of the member to onboard, e.g. "U07BA4JA3HC".',
    )


def register_builtin_tools(
    registry: ToolRegistry,
    searcher: MultiQuerySearcher,
) -> None:
    """Register the default tool set used by the conversation driver.

    Tools:
    - `searchDocuments`: one semantic query over all stored content.
    - `searchUsers`: multi-query search fused and grouped per member.
    - `fetchLinkedInProfile`: stored LinkedIn content for one member.
    - `createOnboardingThread` (admins only): opens a welcome thread.
    """

    def _search_documents(input_data: SearchDocumentsInput, context: ToolContext) -> dict[str, Any]:
        hits = searcher.search(input_data.query, limit=input_data.limit)
        return {
            "query": input_data.query,
            "documents": [
                {
                    "identity": hit.identity,
                    "source_type": hit.source_type,
                    "content": hit.content,
                    "similarity": round(hit.similarity, 4),
                    "metadata": hit.metadata,
                    "member": hit.entity_attributes or None,
                }
                for hit in hits
            ],
        }

    def _search_members(input_data: SearchMembersInput, context: ToolContext) -> dict[str, Any]:
        entity_filter: dict[str, Any] = {}
        if input_data.location is not None:
            entity_filter["location"] = input_data.location.value
        if input_data.checkedInOnly:
            entity_filter["is_checked_in_today"] = True

        groups = searcher.search_members(
            input_data.queries,
            limit=input_data.limit,
            entity_filter=entity_filter or None,
        )
        return {"members": [group.to_dict() for group in groups]}

    def _fetch_linkedin_profile(
        input_data: FetchLinkedInProfileInput, context: ToolContext
    ) -> dict[str, Any]:
        identifier = input_data.memberIdentifier.strip()
        items = searcher.vector_store.documents_for_entity(
            lambda item: item.source_type.startswith("linkedin")
            and _identifies_member(item, identifier)
        )
        return {
            "memberIdentifier": identifier,
            "documents": [
                {
                    "identity": item.identity,
                    "source_type": item.source_type,
                    "content": item.content,
                    "metadata": item.metadata,
                }
                for item in items
            ],
        }

    async def _create_onboarding_thread(
        input_data: CreateOnboardingThreadInput, context: ToolContext
    ) -> str:
        if context.platform is None:
            raise RuntimeError("No chat platform client is configured")
        return await context.platform.create_onboarding_thread(input_data.memberSlackId)

    registry.register(
        ToolSpec(
            name="searchDocuments",
            description=(
                "Search Slack messages, LinkedIn experiences and the members database by "
                "semantic similarity. Prefer several specific searches (e.g. 'investors', "
                "'solar', 'investors in solar') over one multi-topic search."
            ),
            args_schema=SearchDocumentsInput,
            handler=_search_documents,
            describe=lambda args: f'Semantic search for "{args.query}"',
        )
    )
    registry.register(
        ToolSpec(
            name="searchUsers",
            description=(
                "Search for members associated with documents (Slack messages, LinkedIn "
                "experiences and the members database) by semantic similarity. Results "
                "include each member's office location and today's check-in location."
            ),
            args_schema=SearchMembersInput,
            handler=_search_members,
            describe=describe_member_search,
        )
    )
    registry.register(
        ToolSpec(
            name="fetchLinkedInProfile",
            description=(
                "Fetch stored LinkedIn profile data for a member: employment history, "
                "current position and public blurb."
            ),
            args_schema=FetchLinkedInProfileInput,
            handler=_fetch_linkedin_profile,
            describe=_describe_profile_fetch,
        )
    )
    registry.register(
        ToolSpec(
            name="createOnboardingThread",
            description=(
                "Create an onboarding thread for a member with the location admins, "
                "populated with welcome messages. Returns the new thread URL, which "
                "should be shared with the user. Only use when an admin asks."
            ),
            args_schema=CreateOnboardingThreadInput,
            handler=_create_onboarding_thread,
            describe=lambda args: f"Creating onboarding thread for <@{args.memberSlackId}>",
            admin_only=True,
        )
    )


def describe_member_search(args: SearchMembersInput) -> str:
    location = f" in {args.location.value}" if args.location is not None else ""
    queries = f' associated with "{", ".join(args.queries)}"' if args.queries else ""
    checked_in = " who are checked in today" if args.checkedInOnly else ""
    return f"Search for members{location}{queries}{checked_in}"


def normalize_linkedin_url(value: str) -> str | None:
    match = _LINKEDIN_URL_PATTERN.match(value.strip())
    if match is None:
        return None
    return f"https://www.linkedin.com/in/{match.group('slug').lower()}"


def _describe_profile_fetch(args: FetchLinkedInProfileInput) -> str:
    identifier = args.memberIdentifier
    if _SLACK_ID_PATTERN.match(identifier):
        identifier = f"{MEMBER_LINK_PREFIX}{identifier}"
    return f"Fetch LinkedIn profile for {identifier}"


def _identifies_member(item: ContentItem, identifier: str) -> bool:
    attributes = item.entity_attributes
    if identifier in (item.entity_id, attributes.get("name"), attributes.get("slack_id")):
        return True
    # An identifier that is not a LinkedIn URL must not match members without one.
    wanted_url = normalize_linkedin_url(identifier)
    stored_url = attributes.get("linkedin_url")
    if wanted_url is None or not stored_url:
        return False
    return normalize_linkedin_url(str(stored_url)) == wanted_url
