# servicefinder

A small HTTP API for a services marketplace. Providers sign up, fill in a
profile and publish postings (title, description, price, category, city and
district); anyone can browse the postings that are not archived.

The application is a plain WSGI app built on Werkzeug.

## Running the server

```
service-finder
service-finder --addr 127.0.0.1:9000
```

`--addr` takes `host:port` (the host may be left out); the default is
`:8080`, which listens on every interface. The server logs one line per
request at INFO level with the method, path and time taken. Every response
carries permissive CORS headers (any origin, no credentials), and `OPTIONS`
preflight requests are answered with `204 No Content`.

## Endpoints

All API routes live under `/api/v1`. Request and response bodies are JSON.

| Method | Path                            | Login | What it does                                  |
|--------|---------------------------------|-------|-----------------------------------------------|
| GET    | `/healthz`                      | no    | Returns `ok`                                  |
| GET    | `/swagger/doc.json`             | no    | Swagger 2.0 description of the API            |
| GET    | `/swagger/index.html`           | no    | A short page linking to `doc.json`            |
| POST   | `/api/v1/users`                 | no    | Register a user (`provider` or `customer`)    |
| POST   | `/api/v1/login`                 | no    | Log in and receive the `sid` session cookie   |
| POST   | `/api/v1/logout`                | no    | End the session and clear the cookie          |
| GET    | `/api/v1/me`                    | yes   | The logged-in user, with provider profile     |
| PATCH  | `/api/v1/providers/profile`     | yes   | Set the provider profile                      |
| GET    | `/api/v1/postings`              | no    | List public postings                          |
| GET    | `/api/v1/postings/{id}`         | no    | One public posting                            |
| POST   | `/api/v1/postings`              | yes   | Create a posting                              |
| GET    | `/api/v1/postings/mine`         | yes   | The caller's postings, archived ones included |
| PATCH  | `/api/v1/postings/{id}`         | yes   | Update one of the caller's postings           |
| POST   | `/api/v1/postings/{id}/archive` | yes   | Archive one of the caller's postings          |

Logging in sets an HTTP-only, `SameSite=Lax` cookie named `sid`. Sessions
last five minutes; after that the routes that need a login answer 401.

### Registering and logging in

```
POST /api/v1/users
{"name": "Ana", "email": "ana@example.com", "password": "password", "role": "provider"}
```

A name is required, the e-mail must contain `@`, the password must be at
least 8 bytes long (UTF-8) and the role must be `provider` or `customer`.
E-mail addresses and roles are stored lower case, and e-mail addresses must
be unique. The reply is `201` with `id`, `name`, `email` and `role`.

```
POST /api/v1/login
{"email": "ana@example.com", "password": "password"}
```

A wrong e-mail or password gives `401` with `invalid email or password`.

### Provider profile

```
PATCH /api/v1/providers/profile
{"bio": "Plumber", "phone": "placeholder", "expertise": "Pipes", "city": "Springfield", "district": "Centre"}
```

Only providers may set a profile (customers get `401`). Phone, city and
district are required; when one of them is blank the server answers
`500 internal error`.

### Postings

```
POST /api/v1/postings
{"title": "Leak repair", "description": "Kitchen and bathroom", "price": 150,
 "category": "plumbing", "city": "Springfield", "district": "Centre"}
```

Every field is required, the price is a whole number greater than zero, and
the caller must be a registered user; otherwise the reply is `400` with
`missing required fields`. A `PATCH` may change any of `title`,
`description`, `category`, `city`, `district` and `price` (a price of zero
or below gives `400 price must be > 0`); only the provider who created a
posting may change or archive it (`403 forbidden` otherwise). Archived
postings disappear from the public list and from `GET /api/v1/postings/{id}`.

Posting objects are returned with the keys `ID`, `ProviderID`,
`ProviderName`, `Title`, `Description`, `Price`, `Category`, `City`,
`District`, `Archived`, `CreatedAt` and `UpdatedAt` (RFC 3339 times).

Errors come back as `{"error": "<message>"}` with a matching status code
(400, 401, 403, 404 or 500).

## Using the pieces from Python

The domain services can be used without HTTP:

```python
from servicefinder.users import BcryptHasher, UserRepository, UserService
from servicefinder.postings import PostingRepository, PostingService

users = UserService(UserRepository(), BcryptHasher(), None, None)
postings = PostingService(PostingRepository(), users, None, None)

password = "password"
ana = users.register("Ana", "ana@example.com", password, "provider")
posting = postings.create(
    ana.id, "Leak repair", "Kitchen and bathroom", 150,
    "plumbing", "Springfield", "Centre",
)
print([p.title for p in postings.list_public()])
```

Failures raise exceptions: `ValidationError`, `EmailTakenError`,
`UserNotFoundError` and `UnauthorizedError` (all subclasses of `UserError`)
from `servicefinder.users`, and `InvalidFieldsError`, `ForbiddenError` and
`PostingNotFoundError` (subclasses of `PostingError`) from
`servicefinder.postings`.

To serve the API from your own code, build the WSGI app with
`servicefinder.server.build_app(sessions, user_service, posting_service)`
and run it with `servicefinder.server.listen(address, app)` or any WSGI
server. `servicefinder.sessions.SessionManager`, `servicefinder.routing.Router`
and the wrappers in `servicefinder.middleware` (`permissive_cors`,
`with_auth`) can be used on their own.

A Swagger 2.0 description of the API is available from
`servicefinder.openapi.swagger_document` and `servicefinder.openapi.swagger_json`.

## What it does not do

- Nothing is stored on disk: users, postings and sessions live in memory and
  are gone when the process stops.
- The `service-finder` command keeps passwords as given (`PlainHasher`); pass
  a `BcryptHasher` to `UserService` in your own code to hash them.
- `/swagger/` serves the JSON description and a plain link page, not an
  interactive API browser.
- The development server started by `listen` handles one request at a time.