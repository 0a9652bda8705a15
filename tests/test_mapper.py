from catalog_search.mapper import to_document, to_documents
from catalog_search.models import IndexDocument, Product, Tag


def test_maps_all_fields(products):
    doc = to_document(products[0])
    assert doc == IndexDocument(id="p1", name="Red Mug", description="A ceramic mug", price=1299, tags=("kitchen",))
    assert doc.to_source() == {
        "id": "p1",
        "name": "Red Mug",
        "description": "A ceramic mug",
        "price": 1299,
        "tags": ["kitchen"],
    }


def test_deterministic(products):
    for p in products:
        twin = Product(id=p.id, name=p.name, description=p.description, price=p.price, tags=tuple(p.tags))
        assert to_document(p) == to_document(p) == to_document(twin)


def test_duplicate_tags_collapse_in_first_seen_order():
    p = Product(id="x", name="X", description="", price=0,
                tags=(Tag("b"), Tag("a"), Tag("b"), Tag("c"), Tag("a")))
    assert to_document(p).tags == ("b", "a", "c")


def test_no_tags_and_empty_description():
    p = Product(id="x", name="X", description="", price=0)
    doc = to_document(p)
    assert doc.tags == ()
    assert doc.to_source()["tags"] == []


def test_to_documents_keeps_order(products):
    assert [d.id for d in to_documents(products)] == ["p1", "p2", "p3"]
