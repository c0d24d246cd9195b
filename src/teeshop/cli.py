"""Command-line interface for teeshop."""

import argparse
import json
import logging
import sys

from . import __version__
from .catalog import SORT_OPTIONS, ProductFilter
from .errors import InvalidInputError, ProductNotFoundError, TeeshopError, UserNotFoundError
from .models import CartLine, Order, Product
from .pricing import compute_totals
from .seed import SESSION_USERNAME, seed_store
from .store import Store


def get_seeded_store() -> Store:
    """Build a store holding the startup catalog and demo account."""
    return seed_store(Store())


def format_product(product: Product) -> str:
    stock = "" if product.in_stock else " (out of stock)"
    return (
        f"{product.id:>3}  {product.price:>7}  {product.name} "
        f"[{product.category}, {product.gender}]{stock}"
    )


def format_order(order: Order) -> str:
    return (
        f"{order.order_number}  {order.status:<10}  {order.total:>8}  "
        f"{order.created_at:%Y-%m-%d %H:%M}  {order.payment_method}"
    )


def parse_cart_line(text: str) -> CartLine:
    """Parse 'price:quantity' (quantity defaults to 1) into a cart line."""
    price, _, quantity = text.partition(":")
    try:
        qty = int(quantity) if quantity else 1
    except ValueError:
        raise InvalidInputError("quantity", f"not an integer: {quantity!r}")
    return CartLine(product_id=0, name=text, price=price, quantity=qty, size="-", color="-")


def cmd_products(args: argparse.Namespace) -> int:
    """List catalog products."""
    try:
        store = get_seeded_store()
        result = store.list_products(
            ProductFilter(
                category=args.category,
                in_stock=None if args.all else True,
                color=args.color,
                size=args.size,
                gender=args.gender,
                sort=args.sort,
                page=args.page,
                page_size=args.page_size,
            )
        )

        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
            return 0

        if not result.products:
            print("No products found.")
            return 0

        print(f"Products ({len(result.products)} of {result.total}):")
        print()
        for product in result.products:
            print(format_product(product))
        return 0

    except TeeshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_product(args: argparse.Namespace) -> int:
    """Show one product."""
    try:
        store = get_seeded_store()
        product = store.get_product(args.product_id)
        if product is None:
            raise ProductNotFoundError(args.product_id)

        if args.json:
            print(json.dumps(product.to_dict(), indent=2))
            return 0

        print(f"{product.name} (#{product.id})")
        print(f"  Price:     {product.price}")
        print(f"  Category:  {product.category}")
        print(f"  Gender:    {product.gender}")
        print(f"  Colors:    {', '.join(product.available_colors)}")
        print(f"  Sizes:     {', '.join(product.available_sizes)}")
        print(f"  In stock:  {'yes' if product.in_stock else 'no'}")
        if product.materials:
            print(f"  Materials: {product.materials}")
        if product.description:
            print()
            print(f"  {product.description}")
        return 0

    except TeeshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders(args: argparse.Namespace) -> int:
    """List the session user's order history."""
    try:
        store = get_seeded_store()
        user = store.get_user_by_username(SESSION_USERNAME)
        if user is None:
            raise UserNotFoundError(SESSION_USERNAME)
        orders = sorted(
            store.list_orders(user.id), key=lambda o: (o.created_at, o.id), reverse=True
        )

        if args.json:
            data = [store.get_order_with_items(o.id).to_dict() for o in orders]
            print(json.dumps(data, indent=2))
            return 0

        if not orders:
            print("No orders found.")
            return 0

        print(f"Orders for {user.username} ({len(orders)}):")
        print()
        for order in orders:
            print(format_order(order))
            for item in store.get_order_items(order.id):
                print(f"    {item.quantity} x {item.name} ({item.color}, {item.size}) @ {item.price}")
        return 0

    except TeeshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_totals(args: argparse.Namespace) -> int:
    """Compute order totals for ad-hoc cart lines."""
    try:
        lines = [parse_cart_line(text) for text in args.lines]
        totals = compute_totals(lines)

        if args.json:
            print(json.dumps(totals.to_dict(), indent=2))
            return 0

        print(f"Items:    {totals.item_count}")
        print(f"Subtotal: {totals.subtotal}")
        print(f"Shipping: {totals.shipping}")
        print(f"Tax:      {totals.tax}")
        print(f"Total:    {totals.total}")
        return 0

    except TeeshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    import uvicorn

    print("Starting teeshop API server...")
    print(f"API docs: http://{args.host}:{args.port}/docs")
    print()

    # When reload is enabled, uvicorn requires the app as an import string
    app_target = "teeshop.api:app" if args.reload else None
    if app_target is None:
        from .api import app
        app_target = app

    uvicorn.run(
        app_target,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1,  # the store lives in process memory
    )
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="teeshop",
        description="T-shirt storefront: catalog queries, order totals and the REST API.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # products
    products_parser = subparsers.add_parser("products", help="List catalog products")
    products_parser.add_argument("--category", help="Exact category name")
    products_parser.add_argument("--color", help="Only products available in this color")
    products_parser.add_argument("--size", help="Only products available in this size")
    products_parser.add_argument("--gender", help="men, women or unisex")
    products_parser.add_argument(
        "--sort", choices=SORT_OPTIONS, help="Sort order (default: catalog order)"
    )
    products_parser.add_argument("--page", type=int, help="1-based page number")
    products_parser.add_argument("--page-size", type=int, help="Products per page")
    products_parser.add_argument(
        "--all", "-a", action="store_true", help="Include out-of-stock products"
    )
    products_parser.add_argument(
        "--json", action="store_true", help="Output as JSON"
    )

    # product
    product_parser = subparsers.add_parser("product", help="Show one product")
    product_parser.add_argument("product_id", type=int, help="Product ID")
    product_parser.add_argument(
        "--json", action="store_true", help="Output as JSON"
    )

    # orders
    orders_parser = subparsers.add_parser("orders", help="Show the session user's orders")
    orders_parser.add_argument(
        "--json", action="store_true", help="Output as JSON"
    )

    # totals
    totals_parser = subparsers.add_parser(
        "totals", help="Compute subtotal, shipping, tax and total"
    )
    totals_parser.add_argument(
        "lines", nargs="+", metavar="PRICE[:QTY]",
        help="Cart lines, e.g. 29.99:2 34.99",
    )
    totals_parser.add_argument(
        "--json", action="store_true", help="Output as JSON"
    )

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "products": cmd_products,
        "product": cmd_product,
        "orders": cmd_orders,
        "totals": cmd_totals,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
