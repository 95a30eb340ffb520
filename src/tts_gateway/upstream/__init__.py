"""
Clients for the Microsoft Translator / Azure speech backend.

    signature    X-MT-Signature generation for the endpoint call
    credentials  Credential snapshot and single-flight CredentialStore
    endpoint     Anonymous endpoint token fetch
    synthesis    SSML construction and streamed synthesis
    voices       Public voice catalog with TTL caching
    cache        Small thread-safe TTL cache used by the catalog
"""
from .credentials import Credential, CredentialStore
from .endpoint import Endpoint, EndpointFetcher
from .signature import sign
from .synthesis import AudioStream, SynthesisClient, VoiceSynthesisRequest, build_ssml
from .voices import VoiceCatalog, VoiceDescriptor, to_multitts_yaml

__all__ = [
    "AudioStream",
    "Credential",
    "CredentialStore",
    "Endpoint",
    "EndpointFetcher",
    "SynthesisClient",
    "VoiceCatalog",
    "VoiceDescriptor",
    "VoiceSynthesisRequest",
    "build_ssml",
    "sign",
    "to_multitts_yaml",
]
