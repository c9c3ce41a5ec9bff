from flask import request, url_for, current_app, send_file
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_, desc, asc, func
from ..extensions import db
from ..model import Product
from ..utils.api import ok, err
from ..utils.catalog import slugify, normalize_category, parse_bool
from ..utils.decorators import staff_required, admin_required
from ..utils.money import parse_money
from . import bp
import pandas as pd
from io import BytesIO

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# column name -> Product attribute, in export order
EXPORT_COLUMNS = {
    "ID": "id",
    "Name": "name",
    "Slug": "slug",
    "Price": "price",
    "Sale Price": "sale_price",
    "Stock": "stock",
    "Category": "category",
    "Brand": "brand",
    "Warranty": "warranty",
    "Featured": "featured",
    "Images": "images",
    "Short Description": "short_desc",
}
REQUIRED_IMPORT_COLUMNS = ("Name", "Price", "Stock")


# ---------- helpers ----------
def _ep(name: str) -> str:
    return f"{bp.name}.{name}"

def _parse_int(v, default=0):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default

def _parse_opt_float(v):
    if v is None: return None
    if isinstance(v, str) and v.strip() == "": return None
    try: return float(v)
    except (TypeError, ValueError): return None

def _sort_products(query, sort):
    sort = (sort or "").strip()
    mapping = {
        "id": asc(Product.id), "-id": desc(Product.id),
        "name": asc(Product.name), "-name": desc(Product.name),
        "price": asc(Product.price), "-price": desc(Product.price),
        "stock": asc(Product.stock), "-stock": desc(Product.stock),
    }
    col = mapping.get(sort, desc(Product.id))  # newest first
    return query.order_by(col)

def _split_images(v):
    if isinstance(v, (list, tuple)):
        return list(v)
    return [s for s in (p.strip() for p in str(v or "").split(",")) if s]

def _unique_slug(base, exclude_id=None):
    base = base or "product"
    slug, n = base, 2
    while True:
        q = Product.query.filter(Product.slug == slug)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if not q.first():
            return slug
        slug = f"{base}-{n}"
        n += 1

def _apply_payload(product: Product, data: dict, partial=False):
    """Copy API fields onto ``product``; returns an error message or None."""
    if not partial or "name" in data:
        name = str(data.get("name") or "").strip()
        if not name:
            return "name is required"
        product.name = name

    if not partial or "price" in data:
        try:
            product.price = parse_money(data.get("price"), "price")
        except ValueError as e:
            return str(e)

    if "sale_price" in data:
        raw = data.get("sale_price")
        if raw is None or raw == "":
            product.sale_price = None
        else:
            try:
                product.sale_price = parse_money(raw, "sale_price")
            except ValueError as e:
                return str(e)

    if not partial or "stock" in data:
        stock = _parse_int(data.get("stock", 0), default=None)
        if stock is None or stock < 0:
            return "stock must be a non-negative integer"
        product.stock = stock

    if "slug" in data or not product.slug:
        product.slug = _unique_slug(slugify(data.get("slug") or product.name), exclude_id=product.id)
    if "category" in data:
        product.category = normalize_category(data.get("category"))
    for field in ("brand", "warranty", "short_desc"):
        if field in data:
            setattr(product, field, (str(data.get(field)).strip() or None) if data.get(field) is not None else None)
    if "specs" in data:
        specs = data.get("specs")
        if specs is not None and not isinstance(specs, dict):
            return "specs must be an object"
        product.specs = specs
    if "featured" in data:
        product.featured = parse_bool(data.get("featured"))
    if "images" in data or "image" in data:
        imgs = _split_images(data.get("images"))
        if not imgs and data.get("image"):
            imgs = [data.get("image")]
        product.set_images(imgs)
    elif not partial:
        product.set_images([])
    return None


# ---------- storefront ----------
# GET /api/products
@bp.get("")
def list_products():
    """
    Query params:
      q          -> substring match on name/brand
      category   -> category slug or label (normalized)
      brand      -> exact brand (case-insensitive)
      in_stock   -> bool (True = stock > 0)
      min_price, max_price -> float
      sort       -> id, -id, name, -name, price, -price, stock, -stock
      page       -> int, default 1
      per_page   -> int, default 24 (cap 100)
    """
    q = (request.args.get("q") or "").strip()
    category = normalize_category(request.args.get("category"))
    brand = (request.args.get("brand") or "").strip()
    min_price = _parse_opt_float(request.args.get("min_price"))
    max_price = _parse_opt_float(request.args.get("max_price"))
    in_stock = parse_bool(request.args.get("in_stock")) if request.args.get("in_stock") is not None else None
    page = max(request.args.get("page", default=1, type=int) or 1, 1)
    per_page = max(1, min(request.args.get("per_page", default=24, type=int) or 24, 100))

    query = Product.query
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like), Product.brand.ilike(like)))
    if category:
        query = query.filter(Product.category == category)
    if brand:
        query = query.filter(func.lower(Product.brand) == brand.lower())
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if in_stock is True:
        query = query.filter(Product.stock > 0)
    elif in_stock is False:
        query = query.filter(Product.stock <= 0)

    pagination = _sort_products(query, request.args.get("sort")).paginate(
        page=page, per_page=per_page, error_out=False
    )
    meta = {
        "page": pagination.page,
        "pages": pagination.pages or 1,
        "per_page": per_page,
        "total": pagination.total,
    }
    return ok("Products fetched", {"items": [p.as_api() for p in pagination.items], "meta": meta})

# GET /api/products/featured
@bp.get("/featured")
def featured_products():
    limit = max(1, min(request.args.get("limit", default=8, type=int) or 8, 50))
    exclude = request.args.get("exclude", type=int)

    query = Product.query.filter(Product.featured.is_(True))
    if exclude is not None:
        query = query.filter(Product.id != exclude)
    rows = query.order_by(func.random()).limit(limit).all()
    return ok("Featured products", {"items": [p.as_api() for p in rows]})

# GET /api/products/<id>
@bp.get("/<int:pid>")
def get_product(pid):
    product = db.session.get(Product, pid)
    if not product:
        return err("Product not found", 404)
    return ok("Product fetched", product.as_api())

# GET /api/products/slug/<slug>
@bp.get("/slug/<slug>")
def get_product_by_slug(slug):
    product = Product.query.filter(Product.slug == slug.strip().lower()).first()
    if not product:
        return err("Product not found", 404)
    return ok("Product fetched", product.as_api())


# ---------- back office ----------
# POST /api/products
@bp.post("")
@staff_required
def create_product():
    data = request.get_json(silent=True) or {}
    product = Product()
    problem = _apply_payload(product, data)
    if problem:
        return err(problem)

    try:
        db.session.add(product)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return err("Duplicate or invalid data", 409)

    resp = ok("Product created", product.as_api(), 201)
    resp.headers["Location"] = url_for(_ep("get_product"), pid=product.id, _external=True)
    return resp

# PUT /api/products/<id>
@bp.put("/<int:pid>")
@staff_required
def update_product(pid):
    product = db.session.get(Product, pid)
    if not product:
        return err("Product not found", 404)
    data = request.get_json(silent=True) or {}
    problem = _apply_payload(product, data, partial=True)
    if problem:
        db.session.rollback()
        return err(problem)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return err("Duplicate or invalid data", 409)
    return ok("Product updated", product.as_api())

# DELETE /api/products/<id>
@bp.delete("/<int:pid>")
@admin_required
def delete_product(pid):
    product = db.session.get(Product, pid)
    if not product:
        return err("Product not found", 404)
    db.session.delete(product)
    db.session.commit()
    return ok(f"Product {pid} deleted", {"id": pid})

# PATCH /api/products/<id>/featured
@bp.route("/<int:pid>/featured", methods=["PATCH", "POST"])
@staff_required
def set_featured(pid):
    product = db.session.get(Product, pid)
    if not product:
        return err("Product not found", 404)
    payload = request.get_json(silent=True) or {}
    product.featured = parse_bool(payload.get("value")) if "value" in payload else (not product.featured)
    db.session.commit()
    return ok("Featured updated", product.as_api())

# GET /api/products/export
@bp.get("/export")
@staff_required
def export_products():
    """
    Export all products as an Excel file.
    """
    rows = []
    for p in Product.query.order_by(Product.id.asc()).all():
        api = p.as_api()
        row = {col: api.get(attr) for col, attr in EXPORT_COLUMNS.items()}
        row["Images"] = ", ".join(api["images"])
        rows.append(row)
    df = pd.DataFrame(rows, columns=list(EXPORT_COLUMNS))

    output = BytesIO()
    df.to_excel(output, index=False)
    output.seek(0)

    return send_file(output, as_attachment=True, download_name="products_export.xlsx", mimetype=XLSX_MIME)

# POST /api/products/import
@bp.post("/import")
@staff_required
def import_products():
    """
    Import products from an uploaded .xlsx file; rows are matched on Slug (then Name).
    """
    if "file" not in request.files:
        return err("No file part")
    file = request.files["file"]
    if file.filename == "":
        return err("No selected file")
    if not file.filename.lower().endswith(".xlsx"):
        return err("Only .xlsx files are allowed")

    try:
        df = pd.read_excel(file)
    except Exception as e:
        return err(f"Could not read spreadsheet: {e}")

    missing = [c for c in REQUIRED_IMPORT_COLUMNS if c not in df.columns]
    if missing:
        return err(f"Missing required columns: {', '.join(missing)}")

    df = df.astype(object).where(pd.notnull(df), None)
    created = updated = 0
    for idx, row in df.iterrows():
        data = {attr: row.get(col) for col, attr in EXPORT_COLUMNS.items() if col in df.columns and attr != "id"}
        slug = slugify(data.get("slug") or data.get("name") or "")
        product = Product.query.filter(Product.slug == slug).first() if slug else None
        is_new = product is None
        if is_new:
            product = Product()
        problem = _apply_payload(product, data, partial=not is_new)
        if problem:
            db.session.rollback()
            return err(f"Row {idx + 2}: {problem}")
        if is_new:
            db.session.add(product)
            created += 1
        else:
            updated += 1
        db.session.flush()

    db.session.commit()
    current_app.logger.info("product import: %d created, %d updated", created, updated)
    return ok("Products imported successfully", {"created": created, "updated": updated})
