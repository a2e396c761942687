import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

import pytest


ENDNOTE_EXPORT = """<?xml version="1.0" encoding="UTF-8"?>
<xml>
  <records>
    <record>
      <ref-type name="Journal Article">17</ref-type>
      <contributors>
        <authors>
          <author><style face="normal" font="default" size="100%">Doe, Jane</style></author>
          <author><style face="normal" font="default" size="100%">Roe, Richard</style></author>
        </authors>
      </contributors>
      <titles>
        <title><style face="normal" font="default" size="100%">Deep Learning for Citation Parsing</style></title>
        <secondary-title><style face="normal" font="default" size="100%">IEEE Transactions on Computers</style></secondary-title>
      </titles>
      <periodical><full-title><style face="normal" font="default" size="100%">IEEE Transactions on Computers</style></full-title></periodical>
      <pages><style face="normal" font="default" size="100%">101&#8211;110</style></pages>
      <volume><style face="normal" font="default" size="100%">12</style></volume>
      <number><style face="normal" font="default" size="100%">3</style></number>
      <dates><year><style face="normal" font="default" size="100%">2021</style></year></dates>
      <publisher><style face="normal" font="default" size="100%">IEEE</style></publisher>
      <electronic-resource-num><style face="normal" font="default" size="100%">10.1109/TC.2021.12345</style></electronic-resource-num>
      <keywords>
        <keyword><style face="normal" font="default" size="100%">citations</style></keyword>
        <keyword><style face="normal" font="default" size="100%">parsing</style></keyword>
      </keywords>
      <abstract><style face="normal" font="default" size="100%">We parse citations.</style></abstract>
    </record>
    <record>
      <ref-type name="Book Section">5</ref-type>
      <contributors><authors><author>Müller, Hans</author></authors></contributors>
      <titles>
        <title>Graph Methods in Practice</title>
        <secondary-title>Handbook of Graph Theory</secondary-title>
      </titles>
      <dates><year>2019</year></dates>
      <publisher>Springer</publisher>
      <pub-location>Berlin</pub-location>
      <pages>45-67</pages>
    </record>
    <record>
      <ref-type name="Journal Article">17</ref-type>
      <titles><title></title></titles>
      <dates><year>2020</year></dates>
    </record>
  </records>
</xml>
"""

SMITH_RECORD = """<references>
  <record>
    <author>Smith, John</author>
    <year>2023</year>
    <title>A Study of Things</title>
  </record>
</references>
"""


@pytest.fixture()
def endnote_xml() -> str:
    """Three-record EndNote export: an article, a book section and an empty record."""

    return ENDNOTE_EXPORT


@pytest.fixture()
def smith_xml() -> str:
    return SMITH_RECORD


@pytest.fixture()
def fixed_clock():
    from datetime import datetime, timezone

    return lambda: datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
