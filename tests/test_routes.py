"""
tests/test_routes.py
Unit tests for crudgen.routes (parsing and merging the routes file).
"""

from __future__ import annotations

from crudgen.routes import DEFAULT_HEADER, RouteEntry, RouteFile


HEADER = "\n".join(DEFAULT_HEADER) + "\n"

INVOICE = RouteEntry(entity="Invoice", resource="invoices", controller="InvoiceController")
CUSTOMER = RouteEntry(entity="Customer", resource="customers", controller="CustomerController")


# ===========================================================================
# Parsing
# ===========================================================================


class TestParse:
    def test_missing_or_blank_file_gets_header(self) -> None:
        assert RouteFile.parse(None).render() == HEADER
        assert RouteFile.parse("  \n").render() == HEADER

    def test_plain_lines_survive(self) -> None:
        text = HEADER + "\nRoute::get('/', function () {\n    return view('welcome');\n});\n"
        routes = RouteFile.parse(text)
        assert len(routes) == 0
        assert routes.render() == text

    def test_generated_fragment_is_recognised(self) -> None:
        text = HEADER + "\n// Routes for Invoice\nRoute::resource('invoices', 'InvoiceController');\n"
        routes = RouteFile.parse(text)
        assert routes.entries == [INVOICE]
        assert routes.render() == text

    def test_bare_resource_lines(self) -> None:
        text = (
            HEADER
            + "\nRoute::resource('customers', CustomerController::class);\n"
            + "Route::resource('orders', 'App\\Http\\Controllers\\OrderController');\n"
        )
        routes = RouteFile.parse(text)
        found = routes.find("Customer")
        assert found is not None
        assert (found.resource, found.controller, found.commented) == (
            "customers",
            "CustomerController",
            False,
        )
        assert routes.find("Order") is not None
        assert routes.render() == text

    def test_comment_for_another_entity_is_not_paired(self) -> None:
        text = (
            HEADER
            + "\n// Routes for Invoice\nRoute::resource('customers', 'CustomerController');\n"
        )
        routes = RouteFile.parse(text)

        assert [e.entity for e in routes.entries] == ["Customer"]
        assert routes.find("Invoice") is None
        assert routes.render() == text

        assert routes.register(INVOICE) is True
        rendered = routes.render()
        assert "Route::resource('customers', 'CustomerController');" in rendered
        assert rendered.endswith(
            "\n// Routes for Invoice\nRoute::resource('invoices', 'InvoiceController');\n"
        )

    def test_duplicates_are_dropped(self) -> None:
        fragment = "\n// Routes for Invoice\nRoute::resource('invoices', 'InvoiceController');\n"
        routes = RouteFile.parse(HEADER + fragment + fragment)
        assert len(routes) == 1
        assert routes.render() == HEADER + fragment


# ===========================================================================
# Registration
# ===========================================================================


class TestRegister:
    def test_append_to_header(self) -> None:
        routes = RouteFile.parse(HEADER)
        assert routes.register(INVOICE) is True
        assert routes.render() == (
            HEADER
            + "\n// Routes for Invoice\n"
            + "Route::resource('invoices', 'InvoiceController');\n"
        )

    def test_registering_twice_is_a_no_op(self) -> None:
        routes = RouteFile.parse(None)
        routes.register(INVOICE)
        once = routes.render()

        reparsed = RouteFile.parse(once)
        assert reparsed.register(INVOICE) is False
        assert reparsed.render() == once

    def test_order_of_registration_is_kept(self) -> None:
        routes = RouteFile.parse(None)
        routes.register(CUSTOMER)
        routes.register(INVOICE)
        assert [e.entity for e in routes.entries] == ["Customer", "Invoice"]

    def test_bare_line_counts_as_registered(self) -> None:
        text = HEADER + "\nRoute::resource('invoices', InvoiceController::class);\n"
        routes = RouteFile.parse(text)
        assert routes.register(INVOICE) is False
        assert routes.render() == text

    def test_changed_resource_is_replaced_in_place(self) -> None:
        text = (
            HEADER
            + "\n// Routes for Invoice\nRoute::resource('bills', 'InvoiceController');\n"
            + "\n// Routes for Customer\nRoute::resource('customers', 'CustomerController');\n"
        )
        routes = RouteFile.parse(text)
        assert routes.register(INVOICE) is True
        assert [e.entity for e in routes.entries] == ["Invoice", "Customer"]
        assert "'bills'" not in routes.render()
        assert "Route::resource('invoices', 'InvoiceController');" in routes.render()

    def test_trailing_blank_lines_are_collapsed(self) -> None:
        routes = RouteFile.parse(HEADER + "\n\n\n")
        routes.register(INVOICE)
        assert "Route;\n\n// Routes for Invoice" in routes.render()
