"""``resource``: describe the entity producing telemetry.

Attributes listed in the config are merged over whatever the configured
detectors find, and the result is merged over the resource already set on
the provider by earlier processors.
"""

from __future__ import annotations

import asyncio
import logging
import platform
import socket
from importlib.metadata import PackageNotFoundError, version
from typing import Annotated, ClassVar, Literal

from opentelemetry.sdk.resources import (
    HOST_ARCH,
    HOST_NAME,
    OS_DESCRIPTION,
    OS_TYPE,
    TELEMETRY_SDK_LANGUAGE,
    TELEMETRY_SDK_NAME,
    TELEMETRY_SDK_VERSION,
    OTELResourceDetector,
    ProcessResourceDetector,
    Resource,
    ResourceDetector,
)
from pydantic import Field, PlainValidator

from ..attribute import Attribute
from ..components import ProcessorConfig, ResolveContext, Signal
from ..registry import PROCESSORS

logger = logging.getLogger(__name__)

DetectorName = Literal["env", "host", "os", "process", "telemetry.sdk"]


class HostResourceDetector(ResourceDetector):
    def detect(self) -> Resource:
        return Resource(
            {
                HOST_NAME: socket.gethostname(),
                HOST_ARCH: platform.machine(),
            }
        )


class OSResourceDetector(ResourceDetector):
    def detect(self) -> Resource:
        return Resource(
            {
                OS_TYPE: platform.system().lower(),
                OS_DESCRIPTION: platform.platform(),
            }
        )


class TelemetrySDKResourceDetector(ResourceDetector):
    def detect(self) -> Resource:
        try:
            sdk_version = version("opentelemetry-sdk")
        except PackageNotFoundError:
            sdk_version = "unknown"
        return Resource(
            {
                TELEMETRY_SDK_LANGUAGE: "python",
                TELEMETRY_SDK_NAME: "opentelemetry",
                TELEMETRY_SDK_VERSION: sdk_version,
            }
        )


DETECTORS: dict[str, type[ResourceDetector]] = {
    "env": OTELResourceDetector,
    "host": HostResourceDetector,
    "os": OSResourceDetector,
    "process": ProcessResourceDetector,
    "telemetry.sdk": TelemetrySDKResourceDetector,
}


@PROCESSORS.register("resource")
class ResourceConfig(ProcessorConfig):
    signals: ClassVar[frozenset[Signal]] = frozenset(Signal)

    attributes: list[Annotated[Attribute, PlainValidator(Attribute.parse)]] = Field(
        default_factory=list
    )
    detectors: list[DetectorName] = Field(default_factory=list)

    def detect(self) -> Resource:
        """Run the detectors in order; later detectors win on key collisions."""
        resource = Resource.get_empty()
        for name in self.detectors:
            detected = DETECTORS[name]().detect()
            logger.debug("Resource detector %s found %d attribute(s)", name, len(detected.attributes))
            resource = resource.merge(detected)
        return resource

    async def build(self) -> Resource:
        resource = await asyncio.to_thread(self.detect) if self.detectors else Resource.get_empty()
        attributes = {attr.key: attr.value.as_otel() for attr in self.attributes}
        return resource.merge(Resource(attributes))

    async def contribute(self, ctx: ResolveContext) -> None:
        resource = await self.build()
        if ctx.options.resource is not None:
            resource = ctx.options.resource.merge(resource)
        ctx.options.resource = resource
