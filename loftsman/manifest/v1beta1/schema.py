"""JSON schema for manifests/v1beta1 documents."""

from __future__ import annotations

from typing import Any

API_VERSION = "manifests/v1beta1"

_CHART_REF = {"$ref": "#/definitions/chart"}

SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Loftsman manifests/v1beta1 Schema",
    "definitions": {
        "chart": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "source": {"type": "string"},
                "releaseName": {"type": "string"},
                "namespace": {"type": "string"},
                "version": {"type": "string"},
                "values": {"type": ["object", "null"]},
                "timeout": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "all": {
            "type": "object",
            "properties": {"timeout": {"type": "string"}},
            "additionalProperties": False,
        },
    },
    "type": "object",
    "required": ["apiVersion", "metadata", "spec"],
    "properties": {
        "apiVersion": {"type": "string"},
        "metadata": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "labels": {"type": "object"},
            },
            "additionalProperties": False,
        },
        "spec": {
            "type": "object",
            "required": ["charts"],
            "properties": {
                "sources": {
                    "type": "object",
                    "properties": {
                        "charts": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "required": ["type", "name", "location"],
                                "properties": {
                                    "type": {
                                        "type": "string",
                                        "enum": ["directory", "repo"],
                                    },
                                    "name": {"type": "string"},
                                    "location": {"type": "string"},
                                    "credentialsSecret": {
                                        "type": "object",
                                        "required": [
                                            "name",
                                            "namespace",
                                            "usernameKey",
                                            "passwordKey",
                                        ],
                                        "properties": {
                                            "name": {"type": "string"},
                                            "namespace": {"type": "string"},
                                            "usernameKey": {"type": "string"},
                                            "passwordKey": {"type": "string"},
                                        },
                                        "additionalProperties": False,
                                    },
                                },
                                "additionalProperties": True,
                            },
                        },
                        "repos": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "required": ["name", "url"],
                                "properties": {
                                    "name": {"type": "string"},
                                    "url": {"type": "string"},
                                },
                                "additionalProperties": False,
                            },
                        },
                    },
                    "additionalProperties": False,
                },
                "all": {"$ref": "#/definitions/all"},
                "charts": {
                    "type": "array",
                    "items": {
                        "allOf": [
                            _CHART_REF,
                            {"required": ["name", "namespace", "version"]},
                        ]
                    },
                },
            },
            "additionalProperties": False,
            "dependencies": {
                "sources": {
                    "properties": {
                        "charts": {
                            "type": "array",
                            "items": {
                                "allOf": [
                                    _CHART_REF,
                                    {
                                        "required": [
                                            "name",
                                            "source",
                                            "namespace",
                                            "version",
                                        ]
                                    },
                                ]
                            },
                        }
                    }
                }
            },
        },
    },
    "additionalProperties": False,
}

