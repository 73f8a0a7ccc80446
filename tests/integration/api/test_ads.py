"""Integration tests for the ad package API."""
from __future__ import annotations

import pytest

BRIEF = {
    "brand": "Acme",
    "product": "Rocket Skates",
    "valueProp": "Twice as fast as walking",
    "audience": "busy commuters",
    "objective": "conversion",
    "platform": "tiktok",
    "durationSec": 15,
}


async def _generate(client, variant_count=2):
    response = await client.post(
        "/api/ads/packages", json={"brief": BRIEF, "variantCount": variant_count}
    )
    assert response.status_code == 200
    return response.json()


class TestAdsAPI:
    @pytest.mark.asyncio
    async def test_generate_package(self, async_client):
        package = await _generate(async_client, 3)

        assert package["brief"]["brand"] == "Acme"
        assert len(package["variants"]) == 3
        assert package["baseScript"]["beats"][0]["tStart"] == 0.0
        assert package["baseScript"]["cta"] == "Get Rocket Skates now - limited time"

    @pytest.mark.asyncio
    async def test_invalid_brief_rejected(self, async_client):
        brief = {**BRIEF, "durationSec": 3}
        response = await async_client.post("/api/ads/packages", json={"brief": brief})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_variant_count_bounds(self, async_client):
        response = await async_client.post(
            "/api/ads/packages", json={"brief": BRIEF, "variantCount": 6}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_json_export_then_import(self, async_client):
        package = await _generate(async_client)

        exported = await async_client.post("/api/ads/export/json", json=package)

        assert exported.status_code == 200
        assert exported.headers["content-disposition"] == (
            'attachment; filename="Acme_ad_package.json"'
        )
        imported = await async_client.post(
            "/api/ads/import",
            content=exported.content,
            headers={"Content-Type": "application/json"},
        )
        assert imported.status_code == 200
        assert imported.json() == package

    @pytest.mark.asyncio
    async def test_import_rejects_invalid_document(self, async_client):
        response = await async_client.post(
            "/api/ads/import", content=b'{"brief": {"brand": "x"}}'
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_srt_export(self, async_client):
        package = await _generate(async_client)

        response = await async_client.post("/api/ads/export/srt", json=package["baseScript"])

        assert response.status_code == 200
        assert "script_captions.srt" in response.headers["content-disposition"]
        assert response.text.startswith("1\n00:00:00,000 --> 00:00:03,800\nBeat 1:")


class TestExportFilenames:
    async def _export(self, client, brand):
        response = await client.post(
            "/api/ads/packages", json={"brief": {**BRIEF, "brand": brand}, "variantCount": 1}
        )
        assert response.status_code == 200
        package = response.json()
        exported = await client.post("/api/ads/export/json", json=package)
        return package, exported

    @pytest.mark.asyncio
    async def test_non_latin_brand_exports_and_reimports(self, async_client):
        package, exported = await self._export(async_client, "バナナ")

        assert exported.status_code == 200
        assert exported.headers["content-disposition"] == (
            'attachment; filename="____ad_package.json"; '
            "filename*=UTF-8''%E3%83%90%E3%83%8A%E3%83%8A_ad_package.json"
        )
        imported = await async_client.post(
            "/api/ads/import",
            content=exported.content,
            headers={"Content-Type": "application/json"},
        )
        assert imported.json() == package

    @pytest.mark.asyncio
    async def test_quote_in_brand_cannot_add_header_parameters(self, async_client):
        _, exported = await self._export(async_client, 'Acme"x')

        assert exported.status_code == 200
        assert exported.headers["content-disposition"] == (
            'attachment; filename="Acme_x_ad_package.json"; '
            "filename*=UTF-8''Acme%22x_ad_package.json"
        )

    @pytest.mark.asyncio
    async def test_parameter_injection_is_neutralised(self, async_client):
        _, exported = await self._export(async_client, 'Acme"; x="y')

        disposition = exported.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="Acme_; x=_y_ad_package.json"')
        assert disposition.count('"') == 2
