"""Tests for manifest validation, creation and version dispatch."""

import pytest
import yaml

from loftsman.exceptions import (
    MalformedInputError,
    SchemaInvalidError,
    UnsupportedVersionError,
)
from loftsman.manifest import create, get_version, parse_chart_names, validate
from loftsman.manifest.v1beta1 import Manifest


class TestGetVersion:
    """Tests for reading only the apiVersion."""

    def test_reads_api_version(self, manifest_text: str) -> None:
        assert get_version(manifest_text) == "manifests/v1beta1"

    def test_invalid_yaml_is_malformed(self) -> None:
        with pytest.raises(MalformedInputError) as excinfo:
            get_version("apiVersion: [unclosed")

        assert "could not parse the manifest as yaml to retrieve the apiVersion" in (
            excinfo.value.message
        )

    def test_non_mapping_document_is_malformed(self) -> None:
        with pytest.raises(MalformedInputError):
            get_version("- just\n- a list\n")

    def test_empty_document_has_no_version(self) -> None:
        assert get_version("") is None


class TestValidate:
    """Tests for the full Validate operation."""

    def test_valid_manifest(self, manifest_text: str) -> None:
        manifest = validate(manifest_text)

        assert isinstance(manifest, Manifest)
        assert manifest.name == "core-services"
        assert [chart.name for chart in manifest.charts] == ["cray-service", "cray-ui"]
        assert manifest.charts[1].values == {"replicas": 2}

    def test_unsupported_version(self) -> None:
        raw = "apiVersion: manifests/v2\nmetadata: {}\nspec: {charts: []}\n"

        with pytest.raises(UnsupportedVersionError) as excinfo:
            validate(raw)

        assert excinfo.value.api_version == "manifests/v2"

    def test_missing_version_is_unsupported(self) -> None:
        with pytest.raises(UnsupportedVersionError):
            validate("metadata:\n  name: x\n")

    def test_wrong_field_shape_is_malformed(self) -> None:
        raw = (
            "apiVersion: manifests/v1beta1\n"
            "metadata:\n  name: x\n"
            "spec:\n  charts: not-a-list\n"
        )

        with pytest.raises(MalformedInputError) as excinfo:
            validate(raw)

        assert excinfo.value.message.startswith(
            "could not parse the manifest as manifests/v1beta1 yaml:"
        )

    def test_missing_chart_fields_are_schema_violations(self) -> None:
        raw = (
            "apiVersion: manifests/v1beta1\n"
            "metadata:\n  name: x\n"
            "spec:\n  charts:\n  - name: foo\n"
        )

        with pytest.raises(SchemaInvalidError) as excinfo:
            validate(raw)

        violations = excinfo.value.violations
        assert len(violations) == 2
        assert all(v.startswith("spec.charts.0:") for v in violations)
        assert any("'namespace' is a required property" in v for v in violations)
        assert any("'version' is a required property" in v for v in violations)
        assert excinfo.value.message.startswith("manifest validation errors: (1) ")
        assert "(2) " in excinfo.value.message

    def test_missing_spec_is_schema_violation(self) -> None:
        with pytest.raises(SchemaInvalidError) as excinfo:
            validate("apiVersion: manifests/v1beta1\nmetadata:\n  name: x\n")

        assert excinfo.value.violations == ["(root): 'spec' is a required property"]

    def test_unknown_field_is_schema_violation(self) -> None:
        raw = (
            "apiVersion: manifests/v1beta1\n"
            "metadata:\n  name: x\n"
            "spec:\n  charts:\n"
            "  - name: foo\n    namespace: ns\n    version: 1.0.0\n    bogus: true\n"
        )

        with pytest.raises(SchemaInvalidError) as excinfo:
            validate(raw)

        assert any("bogus" in v for v in excinfo.value.violations)

    def test_sources_require_chart_source(self) -> None:
        raw = (
            "apiVersion: manifests/v1beta1\n"
            "metadata:\n  name: x\n"
            "spec:\n"
            "  sources:\n"
            "    charts:\n"
            "    - {type: directory, name: local, location: ./charts}\n"
            "  charts:\n"
            "  - {name: foo, namespace: ns, version: 1.0.0}\n"
        )

        with pytest.raises(SchemaInvalidError) as excinfo:
            validate(raw)

        assert excinfo.value.violations == [
            "spec.charts.0: 'source' is a required property"
        ]

    def test_invalid_source_type(self) -> None:
        raw = (
            "apiVersion: manifests/v1beta1\n"
            "metadata:\n  name: x\n"
            "spec:\n"
            "  sources:\n"
            "    charts:\n"
            "    - {type: s3, name: bucket, location: s3://charts}\n"
            "  charts:\n"
            "  - {name: foo, source: bucket, namespace: ns, version: 1.0.0}\n"
        )

        with pytest.raises(SchemaInvalidError) as excinfo:
            validate(raw)

        assert excinfo.value.violations[0].startswith("spec.sources.charts.0.type:")

    def test_incomplete_credentials_secret(self) -> None:
        raw = (
            "apiVersion: manifests/v1beta1\n"
            "metadata:\n  name: x\n"
            "spec:\n"
            "  sources:\n"
            "    charts:\n"
            "    - type: repo\n"
            "      name: secure\n"
            "      location: https://charts.example.com\n"
            "      credentialsSecret: {name: creds, namespace: default}\n"
            "  charts:\n"
            "  - {name: foo, source: secure, namespace: ns, version: 1.0.0}\n"
        )

        with pytest.raises(SchemaInvalidError) as excinfo:
            validate(raw)

        assert len(excinfo.value.violations) == 2
        assert all(
            v.startswith("spec.sources.charts.0.credentialsSecret:")
            for v in excinfo.value.violations
        )

    def test_values_are_not_schema_checked(self) -> None:
        raw = (
            "apiVersion: manifests/v1beta1\n"
            "metadata:\n  name: x\n"
            "spec:\n  charts:\n"
            "  - name: foo\n    namespace: ns\n    version: 1.0.0\n"
            "    values:\n      anything: {goes: [1, 2]}\n"
        )

        manifest = validate(raw)

        assert manifest.charts[0].values == {"anything": {"goes": [1, 2]}}

    def test_numeric_version_is_read_as_string(self) -> None:
        raw = (
            "apiVersion: manifests/v1beta1\n"
            "metadata:\n  name: x\n"
            "spec:\n  charts:\n"
            "  - {name: foo, namespace: ns, version: 1.10}\n"
            "  - {name: bar, namespace: ns, version: 2}\n"
        )

        manifest = validate(raw)

        assert [chart.version for chart in manifest.charts] == ["1.10", "2"]

    def test_values_keep_yaml_types(self) -> None:
        raw = (
            "apiVersion: manifests/v1beta1\n"
            "metadata:\n  name: x\n"
            "spec:\n  charts:\n"
            "  - name: foo\n    namespace: ns\n    version: 1.10\n"
            "    values:\n      replicas: 2\n      ratio: 0.5\n      tag: '1.10'\n"
        )

        manifest = validate(raw)

        assert manifest.charts[0].version == "1.10"
        assert manifest.charts[0].values == {
            "replicas": 2,
            "ratio": 0.5,
            "tag": "1.10",
        }

    @pytest.mark.parametrize(
        ("chart", "field"),
        [
            ("release_name: ui", "release_name"),
            ("credentials_secret: {name: creds}", "credentials_secret"),
        ],
    )
    def test_snake_case_field_names_are_schema_violations(
        self, chart: str, field: str
    ) -> None:
        raw = (
            "apiVersion: manifests/v1beta1\n"
            "metadata:\n  name: x\n"
            "spec:\n  charts:\n"
            f"  - name: foo\n    namespace: ns\n    version: 1.0.0\n    {chart}\n"
        )

        with pytest.raises(SchemaInvalidError) as excinfo:
            validate(raw)

        assert any(field in v for v in excinfo.value.violations)


class TestAllDefaults:
    """Tests for spec.all defaults merged into charts."""

    RAW = (
        "apiVersion: manifests/v1beta1\n"
        "metadata:\n  name: x\n"
        "spec:\n"
        "  all:\n    timeout: 10m\n"
        "  charts:\n"
        "  - {name: a, namespace: ns, version: 1.0.0}\n"
        "  - {name: b, namespace: ns, version: 1.0.0, timeout: 2m}\n"
    )

    def test_chart_timeout_overrides_all(self) -> None:
        manifest = validate(self.RAW)

        assert [chart.timeout for chart in manifest.charts] == ["10m", "2m"]

    def test_apply_defaults_is_idempotent(self) -> None:
        manifest = validate(self.RAW)

        manifest.apply_defaults()

        assert [chart.timeout for chart in manifest.charts] == ["10m", "2m"]

    def test_no_timeout_anywhere(self, manifest_text: str) -> None:
        manifest = validate(manifest_text)

        assert all(chart.timeout is None for chart in manifest.charts)

    def test_unknown_all_field_is_schema_violation(self) -> None:
        raw = self.RAW.replace("timeout: 10m", "timeout: 10m\n    retries: 3")

        with pytest.raises(SchemaInvalidError):
            validate(raw)


class TestCreate:
    """Tests for manifest creation."""

    def test_create_lists_charts(self) -> None:
        document = yaml.safe_load(create(["a", "b"]))

        assert document == {
            "apiVersion": "manifests/v1beta1",
            "metadata": {"name": ""},
            "spec": {
                "charts": [
                    {"name": "a", "namespace": "", "version": ""},
                    {"name": "b", "namespace": "", "version": ""},
                ]
            },
        }

    def test_created_manifest_validates(self) -> None:
        manifest = validate(create(["a", "b"]))

        assert [chart.name for chart in manifest.charts] == ["a", "b"]
        assert all(chart.namespace == "" for chart in manifest.charts)
        assert all(chart.version == "" for chart in manifest.charts)

    def test_create_without_charts_validates(self) -> None:
        manifest = validate(create([]))

        assert manifest.charts == []

    def test_create_unknown_version(self) -> None:
        with pytest.raises(UnsupportedVersionError):
            create(["a"], api_version="manifests/v0")


class TestParseChartNames:
    def test_splits_and_trims(self) -> None:
        assert parse_chart_names(" a, b ,c") == ["a", "b", "c"]

    def test_blank(self) -> None:
        assert parse_chart_names("") == []
