"""Per-build state shared by the head, body, and partial assemblers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Coroutine, Iterable

from .config import PageBuilderOptions
from .fields import FieldResolver
from .partials import PartialRenderer
from .resources import ResourceDeduplicator, ResourceRegistry, ResourceResolver
from .templates import RenderContext

if TYPE_CHECKING:
    from .content import Document
    from .pod import Pod


async def render_in_order(renders: Iterable[Coroutine[object, object, str]]) -> list[str]:
    """Run renders concurrently; the first failure cancels the rest and is re-raised as is."""
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(render) for render in renders]
    except ExceptionGroup as errors:
        raise errors.exceptions[0]
    return [task.result() for task in tasks]


def inspector_enabled(pod: "Pod", options: PageBuilderOptions) -> bool:
    """Explicit setting wins; otherwise only dev and staging builds get the inspector."""
    if options.inspector.enabled is not None:
        return options.inspector.enabled
    return pod.env.dev or pod.env.name == "staging"


@dataclass(slots=True)
class BuildScope:
    """Everything one page build needs, created fresh for that build and then discarded."""

    pod: "Pod"
    doc: "Document"
    context: RenderContext
    options: PageBuilderOptions
    inspector: bool
    fields: FieldResolver
    resolver: ResourceResolver
    resources: ResourceDeduplicator
    partials: PartialRenderer

    @classmethod
    def create(
        cls,
        doc: "Document",
        context: RenderContext,
        options: PageBuilderOptions,
    ) -> "BuildScope":
        pod = doc.pod
        inspector = inspector_enabled(pod, options)
        resolver = ResourceResolver(doc)
        resources = ResourceDeduplicator(pod, resolver, ResourceRegistry())
        partials = PartialRenderer(
            pod,
            context,
            resources,
            paths=options.partial_paths,
            inspector=inspector,
        )
        return cls(
            pod=pod,
            doc=doc,
            context=context,
            options=options,
            inspector=inspector,
            fields=FieldResolver(doc),
            resolver=resolver,
            resources=resources,
            partials=partials,
        )

    async def render_file(self, pod_path: str) -> str:
        engine = self.pod.engines.get_engine_by_filename(pod_path)
        return await engine.render(pod_path, self.context.as_dict())

    async def render_files(self, pod_paths: Iterable[str]) -> str:
        """Render fragments concurrently and join them in the given order."""
        rendered = await render_in_order(self.render_file(path) for path in pod_paths)
        return "\n".join(rendered)
