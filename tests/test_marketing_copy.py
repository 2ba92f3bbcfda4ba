from agent_portal.models.listings import NormalizedProperty
from agent_portal.services.marketing_copy import ListingCopywriter


def _property() -> NormalizedProperty:
    return NormalizedProperty(
        mls_number="ACT5",
        street_address="2402 Rockingham Cir",
        address="2402 Rockingham Cir, Austin, TX 78704",
        city="Austin",
        zip="78704",
        list_price=875000,
        beds=4,
        baths=2.5,
        sqft=2450,
        year_built=1978,
        property_type="Single Family Residence",
        subdivision="Barton Hills",
    )


def test_template_fallback_without_api_key():
    writer = ListingCopywriter(api_key=None)
    assert not writer.enabled
    result = writer.generate_listing_copy(_property())
    assert result["source"] == "template"
    assert "2402 Rockingham Cir" in result["text"]
    assert "4 bed, 2.5 bath, 2,450 sq ft" in result["text"]
    assert "$875,000" in result["text"]


def test_social_and_email_channels():
    writer = ListingCopywriter(api_key=None)
    social = writer.generate_listing_copy(_property(), channel="social")["text"]
    assert "#JustListed" in social
    email = writer.generate_listing_copy(_property(), channel="email")["text"]
    assert email.startswith("Subject: New listing at 2402 Rockingham Cir")


def test_model_failure_falls_back_to_template():
    class BrokenModel:
        def generate_content(self, *args, **kwargs):
            raise RuntimeError("quota exceeded")

    writer = ListingCopywriter(api_key=None)
    writer._model = BrokenModel()
    result = writer.generate_listing_copy(_property(), tone="luxury")
    assert result["source"] == "template"


def test_model_text_is_returned():
    class StubResponse:
        text = "  Charming Barton Hills home.  "

    class StubModel:
        def generate_content(self, prompt, **kwargs):
            assert "Barton Hills" in prompt
            return StubResponse()

    writer = ListingCopywriter(api_key=None)
    writer._model = StubModel()
    assert writer.generate_listing_copy(_property()) == {"text": "Charming Barton Hills home.", "source": "gemini"}
