"""Tests for cloud vendor SDK detection."""

from codeflow.analysis.cloud_services import CLOUD_VENDORS, detect_cloud_services, match_vendors


class TestVendorTable:
    def test_vendor_order(self):
        assert [v.marker for v in CLOUD_VENDORS] == [
            "aws-sdk",
            "firebase",
            "supabase",
            "@google-cloud",
            "@azure",
        ]

    def test_substring_match(self):
        """Scoped packages match on the marker substring."""
        assert [v.provider for v in match_vendors("@aws-sdk/client-s3")] == ["AWS"]
        assert [v.provider for v in match_vendors("@azure/storage-blob")] == ["Azure"]
        assert match_vendors("lodash") == []


class TestDetection:
    """Test detection over parsed import sources."""

    def test_mixed_imports(self, parse):
        code = (
            "import AWS from 'aws-sdk';\n"
            "const firebase = require('firebase/app');\n"
            "import { createClient } from '@supabase/supabase-js';\n"
            "import _ from 'lodash';\n"
        )
        usages = detect_cloud_services(parse(code))
        assert [(u.provider, u.service, u.line) for u in usages] == [
            ("AWS", "AWS SDK", 1),
            ("Google Cloud", "Firebase", 2),
            ("Supabase", "Supabase Client", 3),
        ]

    def test_repeated_imports_are_kept(self, parse):
        """Importing the same vendor twice yields two entries."""
        code = "import S3 from 'aws-sdk/clients/s3';\nimport DynamoDB from 'aws-sdk/clients/dynamodb';"
        usages = detect_cloud_services(parse(code))
        assert [u.line for u in usages] == [1, 2]
        assert {u.provider for u in usages} == {"AWS"}

    def test_google_cloud_client(self, parse):
        usages = detect_cloud_services(parse("const { Storage } = require('@google-cloud/storage');"))
        assert [(u.provider, u.service) for u in usages] == [("Google Cloud", "Google Cloud Client")]

    def test_dynamic_import(self, parse):
        usages = detect_cloud_services(parse("const mod = import('@azure/identity');"))
        assert [u.provider for u in usages] == ["Azure"]

    def test_no_imports(self, parse):
        assert detect_cloud_services(parse("const a = 'aws-sdk';")) == []
