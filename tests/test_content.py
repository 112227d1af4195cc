from bunder_bot.content import Content


def test_default_content_has_demo_partners():
    content = Content()
    names = [c.name for c in content.companies]
    assert names == ["TechSoft", "GreenEnergy", "LogiTrans", "FinanceHub", "EcoFarm"]
    assert content.weather_facts


def test_find_company_matches_both_ways():
    content = Content()
    assert content.find_company("techsoft").name == "TechSoft"
    assert content.find_company("GreenEnergy hakkında bilgi").name == "GreenEnergy"
    assert content.find_company("Fin").name == "FinanceHub"
    assert content.find_company("xyz") is None
    assert content.find_company("   ") is None


def test_custom_content_file(tmp_path):
    path = tmp_path / "content.yml"
    path.write_text(
        "responses:\n"
        "  unknown: ['bilmiyorum']\n"
        "companies:\n"
        "  - {name: Solo, industry: X, region: Y, size: Z, interests: W}\n",
        encoding="utf-8",
    )
    content = Content(str(path))
    assert content.replies_for("greeting") == ["bilmiyorum"]
    assert content.company_by_name("Solo").region == "Y"
    assert content.weather_facts == []


def test_missing_content_file(tmp_path):
    content = Content(str(tmp_path / "nope.yml"))
    assert content.companies == []
    assert content.replies_for("help") == [""]
