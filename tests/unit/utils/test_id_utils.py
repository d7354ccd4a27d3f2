"""Tests unitarios para la conversión de IDs REST/GraphQL."""

from store_migrator.utils.id_utils import graphql_to_rest_id, rest_to_graphql_id


class TestIdConversion:
    """Tests para rest_to_graphql_id y graphql_to_rest_id."""

    def test_rest_to_graphql(self):
        """Debe construir el GID y dejar pasar los que ya lo son."""
        assert rest_to_graphql_id(298548887612, "Comment") == "gid://shopify/Comment/298548887612"
        assert rest_to_graphql_id("gid://shopify/Article/1", "Article") == "gid://shopify/Article/1"
        assert rest_to_graphql_id(None, "Article") == ""

    def test_graphql_to_rest(self):
        """Debe extraer el ID numérico del GID."""
        assert graphql_to_rest_id("gid://shopify/Article/298548887612") == "298548887612"
        assert graphql_to_rest_id("12345") == "12345"
        assert graphql_to_rest_id(None) == ""
